"""
Contact Form Submissions App

Handles the public contact form and its single JSON endpoint:
- Submission of name/email/message with server-side validation
- Sanitization and persistence of accepted submissions
- Staff email notification in the background
- Listing of submissions and daily statistics
"""

"""
Contact Form Submission Models

Database schema for contact form submissions.
"""
from django.db import models


class Submission(models.Model):
    """
    A validated, sanitized contact form record.

    Rows are created by the submission endpoint only and are never
    updated or deleted afterwards.
    """

    id = models.BigAutoField(primary_key=True)

    name = models.TextField(
        help_text="Submitter name (HTML-escaped)"
    )

    email = models.TextField(
        help_text="Submitter email address (filtered to address-safe characters)"
    )

    message = models.TextField(
        help_text="Message content (HTML-escaped)"
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When the submission was received"
    )

    class Meta:
        db_table = 'users'
        ordering = ['-created_at', '-id']
        verbose_name = 'Submission'
        verbose_name_plural = 'Submissions'

    def __str__(self):
        return f"#{self.id} {self.name} <{self.email}>"

"""
URL configuration for the contact form service.

- /                 contact form page (client controller)
- /api/process/     submission and query endpoint
- /admin/           read-only submission browser
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('submissions.urls')),
]

"""
Contact Form URL Configuration
"""
from django.urls import path, re_path
from .views import ContactFormPageView, SubmissionEndpointView

app_name = 'submissions'

urlpatterns = [
    path('', ContactFormPageView.as_view(), name='form'),
    # Single endpoint, with or without the trailing slash
    re_path(r'^api/process/?$', SubmissionEndpointView.as_view(), name='process'),
]

"""
Contact Form Views

The contact form page and the single JSON endpoint behind it.
"""
import logging

from django.conf import settings
from django.urls import reverse
from django.utils import timezone
from django.views.generic import TemplateView
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .choices import QueryAction
from .exceptions import UnsupportedOperation, ValidationError
from .notifications import queue_submission_notification
from .responses import envelope
from .rules import client_rules
from .serializers import SUBMITTED_AT_FORMAT, SubmissionInputSerializer, SubmissionSerializer
from .services.storage import SubmissionStore

logger = logging.getLogger(__name__)


class SubmissionEndpointView(APIView):
    """
    Contact form endpoint.

    POST /api/process/              submit name/email/message (form-encoded)
    GET  /api/process/?action=list  all submissions, most recent first
    GET  /api/process/?action=stats total and per-day counts
    OPTIONS                         CORS pre-flight, bare 200

    No authentication required. Every reply is a JSON envelope.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        """Validate, sanitize, store and acknowledge a submission."""
        store = SubmissionStore()
        store.ensure_schema()

        serializer = SubmissionInputSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError(errors=serializer.error_list)

        submission = store.create(serializer.validated_data)

        queue_submission_notification(submission.id)

        return envelope(
            True,
            f"Thank you {submission.name}! Your message has been received.",
            data={
                'user_id': submission.id,
                'name': submission.name,
                'submitted_at': timezone.localtime(submission.created_at).strftime(SUBMITTED_AT_FORMAT),
            },
        )

    def get(self, request):
        """Dispatch a read request on ?action= (defaults to list)."""
        raw_action = request.query_params.get('action', QueryAction.LIST.value)
        try:
            action = QueryAction(raw_action)
        except ValueError:
            raise UnsupportedOperation(
                'Invalid action',
                [f'Supported actions: {QueryAction.supported()}']
            )

        store = SubmissionStore()
        store.ensure_schema()

        if action == QueryAction.LIST:
            return self._list(store)
        if action == QueryAction.STATS:
            return self._stats(store)

        raise UnsupportedOperation(
            'Invalid action',
            [f'Supported actions: {QueryAction.supported()}']
        )

    def options(self, request, *args, **kwargs):
        return Response(status=status.HTTP_200_OK)

    def http_method_not_allowed(self, request, *args, **kwargs):
        raise UnsupportedOperation(
            'Method not allowed',
            ['Only POST and GET methods are supported']
        )

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        logger.info(
            f"Request processed: {request.method} {request.get_full_path()} "
            f"-> {response.status_code}"
        )
        return response

    def _list(self, store):
        submissions = store.list_all()
        data = SubmissionSerializer(submissions, many=True).data
        return envelope(
            True,
            'Data retrieved successfully',
            data=data,
            count=len(data),
        )

    def _stats(self, store):
        total = store.total_count()
        daily = store.daily_stats(limit=getattr(settings, 'CONTACT_STATS_DAYS', 7))
        return envelope(
            True,
            'Statistics retrieved successfully',
            data={
                'total_submissions': total,
                'daily_stats': daily,
            },
        )


class ContactFormPageView(TemplateView):
    """
    Public contact form page.

    GET /

    Embeds the shared validation rules and the endpoint URL for
    contact_form.js.
    """

    template_name = 'submissions/contact_form.html'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context['form_config'] = {
            'endpoint': reverse('submissions:process'),
            'rules': client_rules(),
        }
        return context

"""
Submission Storage Service

All reads and writes of the submissions table go through SubmissionStore.
Database failures are logged here with full detail and re-raised as
StorageError, which carries only caller-safe text.
"""
import logging

from django.db import DatabaseError, connections, DEFAULT_DB_ALIAS
from django.db.models import Count
from django.db.models.functions import TruncDate

from submissions.exceptions import StorageError
from submissions.models import Submission

logger = logging.getLogger(__name__)


class SubmissionStore:
    """
    Short-lived handle on the submissions table.

    Usage:
        store = SubmissionStore()
        store.ensure_schema()
        submission_id = store.insert({'name': ..., 'email': ..., 'message': ...})
    """

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    @property
    def connection(self):
        return connections[self.using]

    def _table_exists(self):
        table = Submission._meta.db_table
        return table in self.connection.introspection.table_names()

    def ensure_schema(self):
        """
        Create the submissions table if it does not exist yet.

        Safe to call any number of times. Returns True when the table was
        created by this call.
        """
        try:
            if self._table_exists():
                return False
            with self.connection.schema_editor() as editor:
                editor.create_model(Submission)
        except DatabaseError as exc:
            # Another worker may have created it in the meantime
            try:
                if self._table_exists():
                    return False
            except DatabaseError:
                pass
            logger.error(f"Database error: {exc}", exc_info=True)
            raise StorageError(
                'Database connection failed',
                ['Database is currently unavailable']
            ) from exc

        logger.info(f"Created table '{Submission._meta.db_table}'")
        return True

    def create(self, record):
        """Persist a sanitized record and return the stored Submission."""
        try:
            return Submission.objects.using(self.using).create(
                name=record['name'],
                email=record['email'],
                message=record['message'],
            )
        except DatabaseError as exc:
            logger.error(f"Database insert error: {exc}", exc_info=True)
            raise StorageError('Failed to save data') from exc

    def insert(self, record):
        """Persist a sanitized record and return its new id."""
        return self.create(record).id

    def list_all(self):
        """Every submission, most recent first."""
        try:
            return list(
                Submission.objects.using(self.using).order_by('-created_at', '-id')
            )
        except DatabaseError as exc:
            logger.error(f"Database select error: {exc}", exc_info=True)
            raise StorageError('Failed to retrieve data') from exc

    def daily_stats(self, limit=7):
        """
        Submission counts per calendar day, most recent day first.

        Days are taken in the active time zone. At most ``limit`` days
        are returned; days without submissions do not appear.
        """
        try:
            rows = list(
                Submission.objects.using(self.using)
                .annotate(day=TruncDate('created_at'))
                .values('day')
                .annotate(total=Count('id'))
                .order_by('-day')[:limit]
            )
        except DatabaseError as exc:
            logger.error(f"Database stats error: {exc}", exc_info=True)
            raise StorageError('Failed to retrieve statistics') from exc

        return [
            {'date': row['day'].isoformat(), 'count': row['total']}
            for row in rows
        ]

    def total_count(self):
        try:
            return Submission.objects.using(self.using).count()
        except DatabaseError as exc:
            logger.error(f"Database count error: {exc}", exc_info=True)
            raise StorageError('Failed to retrieve statistics') from exc

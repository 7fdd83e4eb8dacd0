"""
Ensure Submission Schema Management Command

Creates the submissions table when it is missing. Safe to run repeatedly,
e.g. from a deploy hook:

    python manage.py ensure_submission_schema
"""

from django.core.management.base import BaseCommand, CommandError

from submissions.exceptions import StorageError
from submissions.services.storage import SubmissionStore


class Command(BaseCommand):
    help = 'Create the contact form submissions table if it does not exist'

    def add_arguments(self, parser):
        parser.add_argument(
            '--database',
            default='default',
            help='Database alias to use',
        )

    def handle(self, *args, **options):
        store = SubmissionStore(using=options['database'])
        try:
            created = store.ensure_schema()
        except StorageError as exc:
            raise CommandError(f'{exc.message}: {", ".join(exc.errors)}') from exc

        if created:
            self.stdout.write(self.style.SUCCESS('✓ Submissions table created'))
        else:
            self.stdout.write(self.style.SUCCESS('✓ Submissions table already exists'))

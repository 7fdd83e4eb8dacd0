from django.db import models


class QueryAction(models.TextChoices):
    """Read operations selectable with ?action=."""

    LIST = 'list', 'List submissions'
    STATS = 'stats', 'Daily statistics'

    @classmethod
    def supported(cls):
        return ', '.join(cls.values)

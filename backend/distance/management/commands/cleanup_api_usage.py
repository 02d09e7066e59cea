"""
Management command to delete old external API usage rows
Usage: python manage.py cleanup_api_usage --days 90
"""
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from backend.distance.models import ApiUsageLog
from backend.distance.utils import cleanup_usage_logs


class Command(BaseCommand):
    help = "Deletes API usage log rows older than the given number of days"

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=90,
            help='Keep rows from the last N days (default 90)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only report how many rows would be deleted',
        )

    def handle(self, *args, **options):
        days = options['days']
        if days < 1:
            raise CommandError('--days must be at least 1')

        if options['dry_run']:
            cutoff = timezone.now() - timedelta(days=days)
            count = ApiUsageLog.objects.filter(created_at__lt=cutoff).count()
            self.stdout.write(f'{count} API usage rows older than {days} days would be deleted')
            return

        deleted = cleanup_usage_logs(days)
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} API usage rows older than {days} days'))

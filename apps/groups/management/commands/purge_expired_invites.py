"""
Management command to delete expired group invites.

Expired invites are ignored by every query, so this is housekeeping
only. Safe to run from cron.

Usage:
    python manage.py purge_expired_invites
    python manage.py purge_expired_invites --dry-run
"""

from django.core.management.base import BaseCommand

from apps.groups.models import PendingInvite
from apps.groups.services import purge_expired_invites


class Command(BaseCommand):
    help = 'Delete group invites whose expiration has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many invites would be deleted without deleting them',
        )

    def handle(self, *args, **options):
        expired = PendingInvite.objects.outstanding().expired()
        count = expired.count()

        if count == 0:
            self.stdout.write(self.style.SUCCESS('No expired invites to purge.'))
            return

        if options['dry_run']:
            self.stdout.write(
                self.style.WARNING(f'--dry-run mode: {count} expired invite(s) would be deleted.')
            )
            return

        deleted = purge_expired_invites()
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} expired invite(s).'))

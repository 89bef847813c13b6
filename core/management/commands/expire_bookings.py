from django.core.management.base import BaseCommand
from django.utils import timezone

from core.services.booking import BookingExpiryService


class Command(BaseCommand):
    help = 'Expire unpaid bookings whose payment window has passed and release their beds'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only list the overdue booking ids, change nothing',
        )

    def handle(self, *args, **options):
        service = BookingExpiryService()
        now = timezone.now()

        if options['dry_run']:
            overdue = service.overdue_ids(now)
            for booking_id in overdue:
                self.stdout.write(f'Booking #{booking_id} is overdue')
            self.stdout.write(self.style.SUCCESS(f'{len(overdue)} overdue booking(s) found'))
            return

        report = service.sweep(now)
        for booking_id in report.failed:
            self.stderr.write(f'Booking #{booking_id} could not be expired')
        self.stdout.write(
            self.style.SUCCESS(
                f'Expired {len(report.expired)} booking(s), '
                f'skipped {len(report.skipped)}, failed {len(report.failed)}'
            )
        )

from celery import shared_task

from .services.booking import BookingExpiryService


@shared_task
def expire_overdue_bookings():
    """
    Expire bookings whose payment window has closed without evidence.

    Each overdue booking gives its beds back to the room in its own
    transaction; a failure on one booking is logged and the rest still run.
    """
    report = BookingExpiryService().sweep()
    return {
        "expired": report.expired,
        "skipped": report.skipped,
        "failed": report.failed,
    }

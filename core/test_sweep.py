from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from .exceptions import InvalidState
from .factories import IN_MEMORY_STORAGES, book, evidence_upload, make_customer, make_owner, make_pg, make_room
from .models import Booking, Payment
from .services.booking import BookingExpiryService, CustomerBookingService
from .services.inventory import InventoryLedger
from .tasks import expire_overdue_bookings


class FailingRefundBackend:
    def refund(self, payment):
        raise ConnectionError("payment gateway unreachable")


class BrokenLedger(InventoryLedger):
    def __init__(self, broken_room_id):
        self.broken_room_id = broken_room_id

    def release(self, room_id, beds):
        if room_id == self.broken_room_id:
            raise RuntimeError("ledger unavailable")
        return super().release(room_id, beds)


@override_settings(STORAGES=IN_MEMORY_STORAGES)
class ExpirySweepTest(TestCase):
    def setUp(self):
        self.owner = make_owner()
        self.pg = make_pg(self.owner)
        self.room = make_room(self.pg, total_beds=3)
        self.customer = make_customer()
        self.later = timezone.now() + timedelta(hours=25)

    def available(self, room=None):
        room = room or self.room
        room.refresh_from_db()
        return room.available_beds

    def test_overdue_booking_expires_and_frees_beds(self):
        booking = book(self.customer, self.room, beds_booked=2)
        report = BookingExpiryService().sweep(self.later)

        self.assertEqual(report.expired, [booking.pk])
        booking.refresh_from_db()
        self.assertEqual(booking.state, "expired")
        self.assertEqual(booking.owner_reason, "Auto-expired")
        self.assertEqual(booking.decision_at, self.later)
        self.assertEqual(self.available(), 3)
        self.assertEqual(Payment.objects.get(booking=booking).status, Payment.Status.CANCELLED)

    def test_bookings_inside_the_window_are_kept(self):
        booking = book(self.customer, self.room)
        report = BookingExpiryService().sweep()
        self.assertEqual(report.scanned, 0)
        booking.refresh_from_db()
        self.assertEqual(booking.state, "payment_pending")

    def test_submitted_bookings_are_left_for_the_owner(self):
        booking = book(self.customer, self.room)
        CustomerBookingService(self.customer).submit_payment(booking.pk, evidence_upload())
        report = BookingExpiryService().sweep(self.later)
        self.assertEqual(report.scanned, 0)
        self.assertEqual(self.available(), 2)

    def test_direct_expire_of_submitted_booking(self):
        booking = book(self.customer, self.room)
        CustomerBookingService(self.customer).submit_payment(booking.pk, evidence_upload())
        booking = BookingExpiryService().expire(booking.pk, self.later)
        self.assertEqual(booking.state, "expired")
        self.assertEqual(self.available(), 3)

    def test_sweep_is_idempotent(self):
        book(self.customer, self.room)
        service = BookingExpiryService()
        service.sweep(self.later)
        second = service.sweep(self.later)
        self.assertEqual(second.scanned, 0)
        self.assertEqual(self.available(), 3)

    def test_expire_before_deadline_is_refused(self):
        booking = book(self.customer, self.room)
        with self.assertRaises(InvalidState):
            BookingExpiryService().expire(booking.pk)
        self.assertEqual(self.available(), 2)

    def test_paid_external_payment_is_refunded(self):
        booking = book(self.customer, self.room)
        booking.payment.mark_paid("pay_abc")
        with self.assertLogs("core.services.refunds", level="WARNING"):
            BookingExpiryService().sweep(self.later)
        payment = Payment.objects.get(booking=booking)
        self.assertEqual(payment.status, Payment.Status.REFUNDED)
        self.assertEqual(payment.refund_ref, f"manual-{payment.pk}")

    def test_one_failure_does_not_stop_the_batch(self):
        broken_room = make_room(self.pg, total_beds=1)
        broken = book(self.customer, broken_room)
        healthy = book(self.customer, self.room)

        with self.assertLogs("core.services.booking", level="ERROR"):
            report = BookingExpiryService(ledger=BrokenLedger(broken_room.pk)).sweep(self.later)

        self.assertEqual(report.expired, [healthy.pk])
        self.assertEqual(report.failed, [broken.pk])
        broken.refresh_from_db()
        self.assertEqual(broken.state, "payment_pending")
        self.assertEqual(self.available(broken_room), 0)
        self.assertEqual(self.available(), 3)

    @override_settings(BOOKING_SWEEP_BATCH_SIZE=1)
    def test_failing_booking_does_not_starve_later_ones(self):
        broken_room = make_room(self.pg, total_beds=1)
        broken = book(self.customer, broken_room)
        healthy = book(self.customer, self.room)
        service = BookingExpiryService(ledger=BrokenLedger(broken_room.pk))

        with self.assertLogs("core.services.booking", level="ERROR"):
            report = service.sweep(self.later)

        self.assertEqual(report.failed, [broken.pk])
        self.assertEqual(report.expired, [healthy.pk])
        healthy.refresh_from_db()
        self.assertEqual(healthy.state, "expired")

        with self.assertLogs("core.services.booking", level="ERROR"):
            again = service.sweep(self.later)
        self.assertEqual(again.failed, [broken.pk])
        self.assertEqual(again.expired, [])

    @override_settings(BOOKING_REFUND_BACKEND="core.test_sweep.FailingRefundBackend")
    def test_refund_failure_does_not_block_expiry(self):
        booking = book(self.customer, self.room, beds_booked=2)
        booking.payment.mark_paid("pay_xyz")

        with self.assertLogs("core.services.refunds", level="ERROR") as logs:
            report = BookingExpiryService().sweep(self.later)

        self.assertEqual(report.expired, [booking.pk])
        self.assertIsNotNone(logs.records[0].exc_info)
        booking.refresh_from_db()
        self.assertEqual(booking.state, "expired")
        self.assertEqual(self.available(), 3)
        payment = Payment.objects.get(booking=booking)
        self.assertEqual(payment.status, Payment.Status.PAID)
        self.assertEqual(payment.refund_ref, "")

    @override_settings(BOOKING_SWEEP_BATCH_SIZE=1)
    def test_batch_size_limits_each_sweep(self):
        first = book(self.customer, self.room)
        book(self.customer, self.room)
        report = BookingExpiryService().sweep(self.later)
        self.assertEqual(report.expired, [first.pk])
        self.assertEqual(Booking.objects.filter(status="expired").count(), 1)


@override_settings(STORAGES=IN_MEMORY_STORAGES)
class ExpiryEntryPointsTest(TestCase):
    def setUp(self):
        self.room = make_room(make_pg(make_owner()), total_beds=2)
        self.booking = book(make_customer(), self.room)
        Booking.objects.filter(pk=self.booking.pk).update(expires_at=timezone.now() - timedelta(minutes=5))

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command("expire_bookings", "--dry-run", stdout=out)
        self.assertIn(f"Booking #{self.booking.pk} is overdue", out.getvalue())
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, "payment_pending")

    def test_command_expires(self):
        out = StringIO()
        call_command("expire_bookings", stdout=out)
        self.assertIn("Expired 1 booking(s)", out.getvalue())
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.state, "expired")

    def test_celery_task(self):
        result = expire_overdue_bookings()
        self.assertEqual(result["expired"], [self.booking.pk])
        self.room.refresh_from_db()
        self.assertEqual(self.room.available_beds, 2)

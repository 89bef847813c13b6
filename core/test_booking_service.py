from datetime import timedelta
from decimal import Decimal

from django.db.models import Sum
from django.test import TestCase, override_settings

from .exceptions import Conflict, Forbidden, InvalidRequest, InvalidState, NotFound
from .factories import (
    IN_MEMORY_STORAGES,
    book,
    booking_request,
    evidence_upload,
    make_customer,
    make_owner,
    make_pg,
    make_room,
)
from .models import Booking, Evidence, Payment
from .services.booking import CustomerBookingService, OwnerBookingService
from .services.evidence import EvidenceUpload


@override_settings(STORAGES=IN_MEMORY_STORAGES)
class BookingServiceTestBase(TestCase):
    def setUp(self):
        self.owner = make_owner()
        self.pg = make_pg(self.owner)
        self.room = make_room(self.pg, total_beds=2, rent="8000")
        self.customer = make_customer()
        self.customers = CustomerBookingService(self.customer)
        self.owners = OwnerBookingService(self.owner)

    def available(self):
        self.room.refresh_from_db()
        return self.room.available_beds

    def submitted(self, **overrides):
        booking = book(self.customer, self.room, **overrides)
        return self.customers.submit_payment(booking.pk, evidence_upload())


class CreateBookingTest(BookingServiceTestBase):
    def test_pricing_is_fixed_for_both_types(self):
        fixed = book(self.customer, self.room)
        unlimited = book(self.customer, self.room, booking_type="unlimited", end_date=None)
        for booking in (fixed, unlimited):
            booking.refresh_from_db()
            self.assertEqual(booking.rent_amount, Decimal("8000"))
            self.assertEqual(booking.deposit_amount, Decimal("1000"))
            self.assertEqual(booking.platform_fee, Decimal("299"))
            self.assertEqual(booking.total_amount, Decimal("9299"))
        self.assertIsNone(unlimited.end_date)

    def test_reserves_beds_and_opens_payment(self):
        booking = book(self.customer, self.room, beds_booked=2)
        self.assertEqual(self.available(), 0)
        self.assertEqual(booking.state, "payment_pending")
        self.assertEqual(booking.owner_upi, "owner@okbank")
        self.assertEqual(booking.expires_at - booking.created_at, timedelta(hours=24))
        self.assertEqual(booking.payment.status, Payment.Status.CREATED)
        self.assertEqual(booking.payment.amount, Decimal("9299"))

    def test_owner_without_upi_still_books(self):
        self.owner.upi_id = ""
        self.owner.save()
        booking = book(self.customer, self.room)
        self.assertIsNone(booking.owner_upi)

    def test_not_enough_beds(self):
        book(self.customer, self.room, beds_booked=2)
        with self.assertRaises(Conflict):
            book(self.customer, self.room)
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(self.available(), 0)

    def test_more_beds_than_room_holds(self):
        with self.assertRaises(InvalidRequest):
            book(self.customer, self.room, beds_booked=3)
        self.assertEqual(self.available(), 2)

    def test_unapproved_pg_is_not_bookable(self):
        self.pg.status = "pending"
        self.pg.save()
        with self.assertRaises(NotFound):
            book(self.customer, self.room)

    def test_room_must_belong_to_pg(self):
        other_room = make_room(make_pg(self.owner, pg_name="Other PG"))
        with self.assertRaises(NotFound):
            book(self.customer, other_room, pg_id=self.pg.pk)

    def test_owners_cannot_book(self):
        with self.assertRaises(Forbidden):
            CustomerBookingService(self.owner).create_booking(booking_request(self.room))

    def test_request_validation(self):
        bad_requests = [
            {"end_date": None},
            {"customer_upi": "  "},
            {"beds_booked": 0},
            {"booking_type": "weekly"},
            {"start_date": None},
        ]
        for overrides in bad_requests:
            with self.subTest(overrides=overrides), self.assertRaises(InvalidRequest):
                booking_request(self.room, **overrides).validate()

        request = booking_request(self.room)
        with self.assertRaises(InvalidRequest):
            booking_request(self.room, end_date=request.start_date - timedelta(days=1)).validate()


class CustomerActionsTest(BookingServiceTestBase):
    def test_submit_payment_records_evidence(self):
        booking = self.submitted()
        self.assertEqual(booking.state, "payment_submitted")
        self.assertTrue(booking.payment_evidence_ref)
        evidence = Evidence.objects.get(booking=booking)
        self.assertEqual(evidence.kind, Evidence.Kind.PAYMENT)
        self.assertEqual(evidence.reference_code, "UPI123456")
        self.assertEqual(evidence.submitted_by, self.customer)

    def test_submit_payment_needs_image(self):
        booking = book(self.customer, self.room)
        with self.assertRaises(InvalidRequest):
            self.customers.submit_payment(booking.pk, EvidenceUpload(reference_code="X"))

    def test_submit_payment_twice(self):
        booking = self.submitted()
        with self.assertRaises(InvalidState):
            self.customers.submit_payment(booking.pk, evidence_upload())
        self.assertEqual(Evidence.objects.filter(booking=booking).count(), 1)

    def test_only_the_customer_can_pay(self):
        booking = book(self.customer, self.room)
        stranger = CustomerBookingService(make_customer("stranger"))
        with self.assertRaises(Forbidden):
            stranger.submit_payment(booking.pk, evidence_upload())
        with self.assertRaises(Forbidden):
            stranger.cancel(booking.pk)
        booking.refresh_from_db()
        self.assertEqual(booking.state, "payment_pending")

    def test_cancel_releases_beds(self):
        booking = book(self.customer, self.room, beds_booked=2)
        booking = self.customers.cancel(booking.pk)
        self.assertEqual(booking.state, "cancelled")
        self.assertIsNotNone(booking.decision_at)
        self.assertEqual(self.available(), 2)
        self.assertEqual(Payment.objects.get(booking=booking).status, Payment.Status.CANCELLED)

    def test_cancel_after_payment_is_refused(self):
        booking = self.submitted()
        with self.assertRaises(InvalidState):
            self.customers.cancel(booking.pk)
        self.assertEqual(self.available(), 1)

    def test_missing_booking(self):
        with self.assertRaises(NotFound):
            self.customers.cancel(9999)


class OwnerActionsTest(BookingServiceTestBase):
    def test_accept_keeps_beds_held(self):
        booking = self.owners.accept(self.submitted().pk)
        self.assertEqual(booking.state, "accepted")
        self.assertIsNotNone(booking.decision_at)
        self.assertEqual(self.available(), 1)

    def test_accept_twice(self):
        booking = self.submitted()
        self.owners.accept(booking.pk)
        with self.assertRaises(InvalidState):
            self.owners.accept(booking.pk)
        with self.assertRaises(InvalidState):
            self.owners.reject(booking.pk, "changed my mind")

    def test_accept_before_payment(self):
        booking = book(self.customer, self.room)
        with self.assertRaises(InvalidState):
            self.owners.accept(booking.pk)

    def test_other_owner_is_forbidden(self):
        booking = self.submitted()
        intruder = OwnerBookingService(make_owner("intruder"))
        with self.assertRaises(Forbidden):
            intruder.accept(booking.pk)
        with self.assertRaises(Forbidden):
            intruder.reject(booking.pk, "no")
        booking.refresh_from_db()
        self.assertEqual(booking.state, "payment_submitted")
        self.assertEqual(self.available(), 1)

    def test_reject_then_confirm_refund(self):
        booking = self.owners.reject(self.submitted().pk, "Room under repair")
        self.assertEqual(booking.state, "refund_pending")
        self.assertEqual(booking.owner_reason, "Room under repair")
        self.assertEqual(self.available(), 1)

        booking = self.owners.confirm_refund(booking.pk, evidence_upload("REFUND1"))
        self.assertEqual(booking.state, "rejected")
        self.assertTrue(booking.refund_evidence_ref)
        self.assertEqual(self.available(), 2)
        refund = Evidence.objects.get(booking=booking, kind=Evidence.Kind.REFUND)
        self.assertEqual(refund.submitted_by, self.owner)

    def test_reject_needs_a_reason(self):
        booking = self.submitted()
        with self.assertRaises(InvalidRequest):
            self.owners.reject(booking.pk, "   ")

    def test_refund_is_not_released_twice(self):
        booking = self.owners.reject(self.submitted().pk, "Full")
        self.owners.confirm_refund(booking.pk, evidence_upload())
        with self.assertRaises(InvalidState):
            self.owners.confirm_refund(booking.pk, evidence_upload())
        self.assertEqual(self.available(), 2)

    def test_beds_are_conserved(self):
        second_room = make_room(self.pg, total_beds=3)
        accepted = self.submitted()
        self.owners.accept(accepted.pk)
        rejected = self.owners.reject(self.submitted().pk, "Full")
        self.owners.confirm_refund(rejected.pk, evidence_upload())
        cancelled = book(self.customer, second_room, beds_booked=2)
        self.customers.cancel(cancelled.pk)
        book(self.customer, second_room, beds_booked=2)
        self.owners.reject(self.submitted().pk, "Maintenance")

        for room in (self.room, second_room):
            room.refresh_from_db()
            held = [b for b in Booking.objects.filter(room=room) if b.holds_beds]
            held_beds = sum(b.beds_booked for b in held)
            self.assertEqual(room.available_beds + held_beds, room.total_beds)
        self.assertEqual(
            Booking.objects.filter(status="accepted").aggregate(n=Sum("beds_booked"))["n"],
            1,
        )

from django.test import SimpleTestCase

from .exceptions import InvalidRequest, InvalidState
from .models import Booking, BookingState, normalize_status
from .models.booking import STATE_FIELDS, TERMINAL_STATES, TRANSITIONS


def booking_in(state):
    status, payment_status = STATE_FIELDS[state]
    return Booking(status=status, payment_status=payment_status)


class BookingStateTest(SimpleTestCase):
    def test_state_is_derived_from_both_fields(self):
        for state in BookingState.values:
            self.assertEqual(booking_in(state).state, state)

    def test_unknown_combination_is_rejected(self):
        booking = Booking(status="accepted", payment_status="pending")
        with self.assertRaises(InvalidState):
            booking.state

    def test_happy_paths(self):
        self.assertEqual(
            booking_in(BookingState.PAYMENT_PENDING).next_state("submit_payment"),
            BookingState.PAYMENT_SUBMITTED,
        )
        self.assertEqual(booking_in(BookingState.PAYMENT_SUBMITTED).next_state("accept"), BookingState.ACCEPTED)
        self.assertEqual(
            booking_in(BookingState.PAYMENT_SUBMITTED).next_state("reject"),
            BookingState.REFUND_PENDING,
        )
        self.assertEqual(
            booking_in(BookingState.REFUND_PENDING).next_state("confirm_refund"),
            BookingState.REJECTED,
        )
        self.assertEqual(booking_in(BookingState.PAYMENT_PENDING).next_state("cancel"), BookingState.CANCELLED)
        self.assertEqual(booking_in(BookingState.PAYMENT_PENDING).next_state("expire"), BookingState.EXPIRED)

    def test_guards(self):
        with self.assertRaises(InvalidState):
            booking_in(BookingState.PAYMENT_PENDING).next_state("accept")
        with self.assertRaises(InvalidState):
            booking_in(BookingState.PAYMENT_SUBMITTED).next_state("cancel")
        with self.assertRaises(InvalidState):
            booking_in(BookingState.REFUND_PENDING).next_state("expire")
        with self.assertRaises(InvalidState):
            booking_in(BookingState.PAYMENT_SUBMITTED).next_state("confirm_refund")

    def test_terminal_states_have_no_exit(self):
        for state in TERMINAL_STATES:
            booking = booking_in(state)
            self.assertTrue(booking.is_terminal)
            for event in TRANSITIONS:
                with self.assertRaises(InvalidState):
                    booking.next_state(event)

    def test_holds_beds(self):
        self.assertTrue(booking_in(BookingState.REFUND_PENDING).holds_beds)
        self.assertTrue(booking_in(BookingState.ACCEPTED).holds_beds)
        self.assertFalse(booking_in(BookingState.EXPIRED).holds_beds)


class NormalizeStatusTest(SimpleTestCase):
    def test_synonyms(self):
        self.assertEqual(normalize_status("approved"), "accepted")
        self.assertEqual(normalize_status("Confirmed"), "accepted")
        self.assertEqual(normalize_status("declined"), "rejected")
        self.assertEqual(normalize_status("canceled"), "cancelled")
        self.assertEqual(normalize_status("expired"), "expired")

    def test_blank_means_no_filter(self):
        self.assertIsNone(normalize_status(None))
        self.assertIsNone(normalize_status("  "))

    def test_unknown_status(self):
        with self.assertRaises(InvalidRequest):
            normalize_status("teleported")

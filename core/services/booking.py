from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..conf import booking_settings
from ..exceptions import BookingError, Forbidden, InvalidRequest, InvalidState, NotFound
from ..models import Booking, BookingType, Evidence, Payment
from .evidence import EvidenceStorage, EvidenceUpload
from .identity import resolve_customer, resolve_owner_of_pg
from .inventory import InventoryLedger
from .listings import get_approved_pg, get_room, owner_upi
from .pricing import build_quote
from .refunds import refund_external_payment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingRequest:
    """Everything a customer supplies to reserve beds in a room."""

    pg_id: int
    room_id: int
    customer_upi: str
    start_date: date | None
    booking_type: str = BookingType.FIXED
    end_date: date | None = None
    beds_booked: int = 1

    def validate(self) -> None:
        if self.booking_type not in BookingType.values:
            raise InvalidRequest("booking_type must be fixed or unlimited.")
        if isinstance(self.beds_booked, bool) or not isinstance(self.beds_booked, int) or self.beds_booked < 1:
            raise InvalidRequest("beds_booked must be a whole number of at least 1.")
        if not (self.customer_upi or "").strip():
            raise InvalidRequest("customer_upi is required.")
        if self.start_date is None:
            raise InvalidRequest("start_date is required.")
        if self.booking_type == BookingType.FIXED:
            if self.end_date is None:
                raise InvalidRequest("end_date is required for fixed bookings.")
            if self.end_date < self.start_date:
                raise InvalidRequest("end_date must be on or after start_date.")


def _lock_booking(booking_id: int) -> Booking:
    try:
        return Booking.objects.select_for_update().get(pk=booking_id)
    except Booking.DoesNotExist:
        raise NotFound("Booking not found.") from None


def _lock_payment(booking: Booking) -> Payment | None:
    return Payment.objects.select_for_update().filter(booking=booking).first()


def _record_evidence(booking: Booking, kind: str, upload: EvidenceUpload, storage: EvidenceStorage, actor) -> str:
    image_ref = storage.store(upload.image)
    Evidence.objects.create(
        booking=booking,
        kind=kind,
        reference_code=(upload.reference_code or "").strip(),
        image_ref=image_ref,
        submitted_by=actor,
    )
    return image_ref


class CustomerBookingService:
    """Customer-side transitions: reserve, pay, cancel."""

    def __init__(self, customer, ledger: InventoryLedger | None = None, storage: EvidenceStorage | None = None):
        self.customer = customer
        self.ledger = ledger or InventoryLedger()
        self.storage = storage or EvidenceStorage()

    def _lock_own_booking(self, booking_id: int) -> Booking:
        booking = _lock_booking(booking_id)
        if booking.customer_id != self.customer.pk:
            raise Forbidden("This is not your booking.")
        return booking

    def create_booking(self, request: BookingRequest) -> Booking:
        request.validate()
        customer = resolve_customer(self.customer.pk)

        now = timezone.now()
        with transaction.atomic():
            pg = get_approved_pg(request.pg_id)
            room = get_room(request.room_id, pg.pk)
            if request.beds_booked > room.total_beds:
                raise InvalidRequest(
                    f"beds_booked exceeds the room's capacity of {room.total_beds}."
                )
            room = self.ledger.reserve(room.pk, request.beds_booked)
            quote = build_quote(room)
            booking = Booking.objects.create(
                customer=customer,
                pg=pg,
                room=room,
                booking_type=request.booking_type,
                start_date=request.start_date,
                end_date=request.end_date if request.booking_type == BookingType.FIXED else None,
                beds_booked=request.beds_booked,
                rent_amount=quote.rent_amount,
                deposit_amount=quote.deposit_amount,
                platform_fee=quote.platform_fee,
                total_amount=quote.total_amount,
                customer_upi=request.customer_upi.strip(),
                owner_upi=owner_upi(pg),
                created_at=now,
                expires_at=now + booking_settings().payment_window,
            )
            Payment.objects.create(booking=booking, amount=quote.total_amount)

        logger.info(
            "Booking #%s created: customer %s reserved %s bed(s) in room %s (total %s)",
            booking.pk,
            self.customer.pk,
            booking.beds_booked,
            room.pk,
            booking.total_amount,
        )
        return booking

    def submit_payment(self, booking_id: int, upload: EvidenceUpload) -> Booking:
        upload.validate()
        with transaction.atomic():
            booking = self._lock_own_booking(booking_id)
            booking.next_state("submit_payment")
            image_ref = _record_evidence(booking, Evidence.Kind.PAYMENT, upload, self.storage, self.customer)
            booking.mark_payment_submitted(image_ref)
        logger.info("Booking #%s payment evidence submitted", booking.pk)
        return booking

    def cancel(self, booking_id: int) -> Booking:
        with transaction.atomic():
            booking = self._lock_own_booking(booking_id)
            booking.next_state("cancel")
            self.ledger.release(booking.room_id, booking.beds_booked)
            payment = _lock_payment(booking)
            if payment is not None:
                payment.mark_cancelled()
            booking.mark_cancelled()
        logger.info("Booking #%s cancelled by customer, %s bed(s) released", booking.pk, booking.beds_booked)
        return booking


class OwnerBookingService:
    """Owner-side transitions: accept, reject, confirm the refund."""

    def __init__(self, owner, ledger: InventoryLedger | None = None, storage: EvidenceStorage | None = None):
        self.owner = owner
        self.ledger = ledger or InventoryLedger()
        self.storage = storage or EvidenceStorage()

    def _lock_owned_booking(self, booking_id: int) -> Booking:
        booking = _lock_booking(booking_id)
        if resolve_owner_of_pg(booking.pg_id) != self.owner.pk:
            raise Forbidden("You can only manage bookings for your own PGs.")
        return booking

    def accept(self, booking_id: int) -> Booking:
        with transaction.atomic():
            booking = self._lock_owned_booking(booking_id)
            booking.next_state("accept")
            self.ledger.confirm_hold(booking.room_id, booking.beds_booked)
            booking.mark_accepted()
        logger.info("Booking #%s accepted by owner %s", booking.pk, self.owner.pk)
        return booking

    def reject(self, booking_id: int, reason: str) -> Booking:
        reason = (reason or "").strip()
        if not reason:
            raise InvalidRequest("A reason is required to reject a booking.")
        with transaction.atomic():
            booking = self._lock_owned_booking(booking_id)
            booking.mark_refund_pending(reason)
        logger.info("Booking #%s rejected by owner %s, awaiting refund evidence", booking.pk, self.owner.pk)
        return booking

    def confirm_refund(self, booking_id: int, upload: EvidenceUpload) -> Booking:
        upload.validate()
        with transaction.atomic():
            booking = self._lock_owned_booking(booking_id)
            booking.next_state("confirm_refund")
            image_ref = _record_evidence(booking, Evidence.Kind.REFUND, upload, self.storage, self.owner)
            self.ledger.release(booking.room_id, booking.beds_booked)
            booking.mark_rejected(image_ref)
        logger.info("Booking #%s refund confirmed, %s bed(s) released", booking.pk, booking.beds_booked)
        return booking


@dataclass
class SweepReport:
    expired: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def scanned(self) -> int:
        return len(self.expired) + len(self.skipped) + len(self.failed)


class BookingExpiryService:
    """Finalizes bookings whose payment window has passed."""

    def __init__(self, ledger: InventoryLedger | None = None):
        self.ledger = ledger or InventoryLedger()

    def _overdue_page(
        self, now: datetime, limit: int, after: tuple[datetime, int] | None = None
    ) -> list[tuple[int, datetime]]:
        queryset = Booking.objects.filter(
            status="pending",
            payment_status="pending",
            expires_at__lt=now,
        )
        if after is not None:
            expires_at, booking_id = after
            queryset = queryset.filter(
                Q(expires_at__gt=expires_at) | Q(expires_at=expires_at, id__gt=booking_id)
            )
        return list(queryset.order_by("expires_at", "id").values_list("id", "expires_at")[:limit])

    def overdue_ids(self, now: datetime | None = None, limit: int | None = None) -> list[int]:
        now = now or timezone.now()
        limit = limit or booking_settings().sweep_batch_size
        return [booking_id for booking_id, _ in self._overdue_page(now, limit)]

    def expire(self, booking_id: int, now: datetime | None = None) -> Booking:
        now = now or timezone.now()
        with transaction.atomic():
            booking = _lock_booking(booking_id)
            booking.next_state("expire")
            if now <= booking.expires_at:
                raise InvalidState(f"Booking #{booking.pk} has not passed its deadline yet.")
            self.ledger.release(booking.room_id, booking.beds_booked)
            payment = _lock_payment(booking)
            if payment is not None:
                if payment.needs_refund:
                    refund_external_payment(payment)
                else:
                    payment.mark_cancelled()
            booking.mark_expired(now)
        logger.info("Booking #%s expired, %s bed(s) released", booking.pk, booking.beds_booked)
        return booking

    def _attempt(self, booking_id: int, now: datetime, report: SweepReport) -> None:
        try:
            self.expire(booking_id, now)
        except (InvalidState, NotFound):
            logger.debug("Booking #%s no longer eligible for expiry", booking_id)
            report.skipped.append(booking_id)
        except BookingError as exc:
            logger.error("Expiry of booking #%s refused: %s", booking_id, exc)
            report.failed.append(booking_id)
        except Exception:
            logger.exception("Expiry of booking #%s failed", booking_id)
            report.failed.append(booking_id)
        else:
            report.expired.append(booking_id)

    def sweep(self, now: datetime | None = None) -> SweepReport:
        """Expire up to one batch of overdue bookings, oldest deadline first.

        Failed bookings stay overdue and do not count against the batch; the
        scan pages past them on ``(expires_at, id)`` so they cannot starve
        bookings queued behind them.
        """

        now = now or timezone.now()
        batch_size = booking_settings().sweep_batch_size
        report = SweepReport()
        after = None
        while len(report.expired) + len(report.skipped) < batch_size:
            page = self._overdue_page(now, batch_size, after)
            if not page:
                break
            for booking_id, expires_at in page:
                if len(report.expired) + len(report.skipped) >= batch_size:
                    break
                after = (expires_at, booking_id)
                self._attempt(booking_id, now, report)
        if report.scanned:
            logger.info(
                "Expiry sweep: %s expired, %s skipped, %s failed",
                len(report.expired),
                len(report.skipped),
                len(report.failed),
            )
        return report


def booking_for_viewer(booking_id: int, user) -> Booking:
    """Load a booking for display to its customer or the owner of its PG."""

    booking = (
        Booking.objects.select_related("pg", "room", "customer")
        .filter(pk=booking_id)
        .first()
    )
    if booking is None:
        raise NotFound("Booking not found.")
    if booking.customer_id != user.pk and booking.pg.owner_id != user.pk:
        raise Forbidden("This is not your booking.")
    return booking


"""Refunds of external-channel payments when a booking expires."""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils.module_loading import import_string

from ..conf import booking_settings
from ..models import Payment

logger = logging.getLogger(__name__)


class ManualRefundBackend:
    """Hands the refund to operators; returns the reference they will track it by."""

    def refund(self, payment: Payment) -> str:
        reference = f"manual-{payment.pk}"
        logger.warning(
            "Payment %s (%s, provider ref %s) for booking #%s needs a manual refund: %s",
            payment.pk,
            payment.amount,
            payment.provider_ref or "-",
            payment.booking_id,
            reference,
        )
        return reference


def get_refund_backend():
    return import_string(booking_settings().refund_backend)()


def refund_external_payment(payment: Payment | None) -> bool:
    """Refund ``payment`` if it was paid; failures are logged and reported as False."""

    if payment is None or not payment.needs_refund:
        return True
    try:
        with transaction.atomic():
            reference = get_refund_backend().refund(payment)
    except Exception:
        logger.exception("Refund failed for payment %s of booking #%s", payment.pk, payment.booking_id)
        return False
    payment.mark_refunded(reference or "")
    logger.info("Refunded payment %s of booking #%s (%s)", payment.pk, payment.booking_id, reference)
    return True

from django.db import models

from .booking import Booking


class Payment(models.Model):
    """Money received for a booking through a channel outside the UPI evidence flow."""

    class Status(models.TextChoices):
        CREATED = "created", "Created"
        PAID = "paid", "Paid"
        CANCELLED = "cancelled", "Cancelled"
        REFUNDED = "refunded", "Refunded"

    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name="payment")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.CREATED)
    provider_ref = models.CharField(max_length=100, blank=True)
    refund_ref = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover - simple display helper
        return f"Payment for booking #{self.booking_id} ({self.status})"

    @property
    def needs_refund(self) -> bool:
        return self.status == self.Status.PAID

    def mark_paid(self, provider_ref: str) -> None:
        self.status = self.Status.PAID
        self.provider_ref = provider_ref
        self.save(update_fields=["status", "provider_ref", "updated_at"])

    def mark_refunded(self, refund_ref: str = "") -> None:
        self.status = self.Status.REFUNDED
        self.refund_ref = refund_ref
        self.save(update_fields=["status", "refund_ref", "updated_at"])

    def mark_cancelled(self) -> None:
        if self.status != self.Status.CREATED:
            return
        self.status = self.Status.CANCELLED
        self.save(update_fields=["status", "updated_at"])

from django.db import models

from .booking import Booking
from .user import User


class Evidence(models.Model):
    """Proof that money moved: a payment by the customer or a refund by the owner."""

    class Kind(models.TextChoices):
        PAYMENT = "payment", "Payment"
        REFUND = "refund", "Refund"

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="evidence")
    kind = models.CharField(max_length=10, choices=Kind.choices)
    reference_code = models.CharField(max_length=100, blank=True, help_text="UPI transaction reference")
    image_ref = models.CharField(max_length=500, help_text="Opaque reference returned by evidence storage")
    submitted_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="submitted_evidence")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "evidence"

    def __str__(self) -> str:  # pragma: no cover - simple display helper
        return f"{self.get_kind_display()} evidence for booking #{self.booking_id}"

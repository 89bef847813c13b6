from django.db import models
from django.db.models import F, Q

from .user import User


class PG(models.Model):
    PG_TYPE_CHOICES = (
        ("boys", "Only Boys"),
        ("girls", "Only Girls"),
        ("both", "Co-ed"),
    )
    STATUS_CHOICES = (
        ("pending", "Pending Review"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
    )

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        limit_choices_to={"user_type": "owner"},
        related_name="pgs",
    )
    pg_name = models.CharField(max_length=255)
    address = models.TextField()
    area = models.CharField(max_length=100)
    pg_type = models.CharField(max_length=10, choices=PG_TYPE_CHOICES, default="both")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="approved")
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover - simple display helper
        return self.pg_name

    @property
    def is_approved(self) -> bool:
        return self.status == "approved"


class Room(models.Model):
    """A rentable room; ``available_beds`` is owned by the inventory ledger."""

    pg = models.ForeignKey(PG, on_delete=models.CASCADE, related_name="rooms")
    room_type = models.CharField(max_length=50, help_text="e.g., 2-sharing, AC triple")
    rent_monthly = models.DecimalField(max_digits=10, decimal_places=2)
    total_beds = models.PositiveIntegerField()
    available_beds = models.PositiveIntegerField()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(available_beds__lte=F("total_beds")),
                name="room_available_beds_within_capacity",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - simple display helper
        return f"{self.pg.pg_name} - {self.room_type}"

    @property
    def held_beds(self) -> int:
        return self.total_beds - self.available_beds

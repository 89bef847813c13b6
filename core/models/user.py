from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    USER_TYPE_CHOICES = (
        ("customer", "Customer"),
        ("owner", "Owner"),
    )
    GENDER_CHOICES = (
        ("boy", "Boy"),
        ("girl", "Girl"),
    )

    user_type = models.CharField(max_length=10, choices=USER_TYPE_CHOICES, default="customer")
    contact_number = models.CharField(max_length=15, null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, null=True, blank=True)
    upi_id = models.CharField(
        max_length=100,
        blank=True,
        help_text="UPI handle customers pay into (owners only)",
    )

    @property
    def is_customer(self) -> bool:
        return self.user_type == "customer"

    @property
    def is_owner(self) -> bool:
        return self.user_type == "owner"

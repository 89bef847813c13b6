"""Factories shared by the booking test modules."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from io import BytesIO

from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from .models import PG, Room, User
from .services.booking import BookingRequest, CustomerBookingService
from .services.evidence import EvidenceUpload

IN_MEMORY_STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}


def make_owner(username: str = "owner", upi_id: str = "owner@okbank") -> User:
    return User.objects.create_user(
        username=username,
        password="pass1234",
        email=f"{username}@example.com",
        user_type="owner",
        upi_id=upi_id,
    )


def make_customer(username: str = "customer") -> User:
    return User.objects.create_user(
        username=username,
        password="pass1234",
        email=f"{username}@example.com",
        first_name=username.title(),
        user_type="customer",
    )


def make_pg(owner: User, **overrides) -> PG:
    fields = {
        "pg_name": "Sunrise PG",
        "address": "12 MG Road",
        "area": "Koramangala",
        "status": "approved",
    }
    fields.update(overrides)
    return PG.objects.create(owner=owner, **fields)


def make_room(pg: PG, total_beds: int = 2, rent: str = "8000", available_beds: int | None = None) -> Room:
    return Room.objects.create(
        pg=pg,
        room_type="2-sharing",
        rent_monthly=Decimal(rent),
        total_beds=total_beds,
        available_beds=total_beds if available_beds is None else available_beds,
    )


def booking_request(room: Room, **overrides) -> BookingRequest:
    fields = {
        "pg_id": room.pg_id,
        "room_id": room.pk,
        "customer_upi": "customer@okbank",
        "start_date": date.today() + timedelta(days=7),
        "end_date": date.today() + timedelta(days=37),
        "booking_type": "fixed",
        "beds_booked": 1,
    }
    fields.update(overrides)
    return BookingRequest(**fields)


def book(customer: User, room: Room, **overrides):
    return CustomerBookingService(customer).create_booking(booking_request(room, **overrides))


def evidence_image(name: str = "proof.png") -> SimpleUploadedFile:
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color=(20, 120, 60)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


def evidence_upload(reference_code: str = "UPI123456") -> EvidenceUpload:
    return EvidenceUpload(image=evidence_image(), reference_code=reference_code)

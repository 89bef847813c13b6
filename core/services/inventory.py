from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F

from ..exceptions import Conflict, InvalidRequest, NotFound
from ..models import Room

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Owns ``Room.available_beds``; every bed movement goes through here.

    Each method locks the room row and must run inside the caller's
    ``transaction.atomic()`` block so the delta commits or rolls back together
    with the booking change that caused it.
    """

    def _lock(self, room_id: int) -> Room:
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("Inventory changes must run inside transaction.atomic().")
        try:
            return Room.objects.select_for_update().get(pk=room_id)
        except Room.DoesNotExist:
            raise NotFound("Room not found.") from None

    @staticmethod
    def _check_count(beds: int) -> None:
        if beds < 1:
            raise InvalidRequest("Bed count must be at least 1.")

    def reserve(self, room_id: int, beds: int) -> Room:
        self._check_count(beds)
        room = self._lock(room_id)
        if room.available_beds < beds:
            raise Conflict(
                f"Not enough beds available: requested {beds}, {room.available_beds} left."
            )
        Room.objects.filter(pk=room.pk).update(available_beds=F("available_beds") - beds)
        room.refresh_from_db(fields=["available_beds"])
        logger.debug("Reserved %s bed(s) in room %s, %s left", beds, room.pk, room.available_beds)
        return room

    def release(self, room_id: int, beds: int) -> Room:
        self._check_count(beds)
        room = self._lock(room_id)
        restored = min(room.available_beds + beds, room.total_beds)
        if restored - room.available_beds < beds:
            logger.warning(
                "Release of %s bed(s) in room %s capped at capacity %s (was %s available)",
                beds,
                room.pk,
                room.total_beds,
                room.available_beds,
            )
        room.available_beds = restored
        room.save(update_fields=["available_beds"])
        logger.debug("Released %s bed(s) in room %s, %s now available", beds, room.pk, room.available_beds)
        return room

    def confirm_hold(self, room_id: int, beds: int) -> Room:
        """Lock the room and fail loudly if it no longer shows ``beds`` as held."""

        self._check_count(beds)
        room = self._lock(room_id)
        if room.held_beds < beds:
            raise Conflict(
                f"Room capacity no longer covers this booking: {room.held_beds} bed(s) held, {beds} needed."
            )
        return room

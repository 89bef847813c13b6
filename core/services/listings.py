"""Read-only lookups into PG listings used when a booking is created."""

from __future__ import annotations

from ..exceptions import NotFound
from ..models import PG, Room


def get_approved_pg(pg_id: int) -> PG:
    pg = PG.objects.select_related("owner").filter(pk=pg_id, status="approved").first()
    if pg is None:
        raise NotFound("PG not found or not approved.")
    return pg


def get_room(room_id: int, pg_id: int) -> Room:
    room = Room.objects.filter(pk=room_id, pg_id=pg_id).first()
    if room is None:
        raise NotFound("Room not found in this PG.")
    return room


def owner_upi(pg: PG) -> str | None:
    return (pg.owner.upi_id or "").strip() or None

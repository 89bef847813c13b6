"""Identity lookups the booking services authorize against."""

from __future__ import annotations

from django.contrib.auth import get_user_model

from ..exceptions import Forbidden, NotFound
from ..models import PG

User = get_user_model()


def resolve_customer(user_id: int):
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound("Customer not found.")
    if user.user_type != "customer":
        raise Forbidden("Only customer accounts can book beds.")
    return user


def resolve_owner_of_pg(pg_id: int) -> int:
    owner_id = PG.objects.filter(pk=pg_id).values_list("owner_id", flat=True).first()
    if owner_id is None:
        raise NotFound("PG not found.")
    return owner_id

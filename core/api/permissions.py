from rest_framework import permissions


class IsCustomer(permissions.BasePermission):
    """Only customer accounts can book beds."""

    message = "Only customer accounts can use this endpoint."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return getattr(user, "user_type", None) == "customer"


class IsOwner(permissions.BasePermission):
    """Only PG owners can work the booking queue."""

    message = "Only PG owners can use this endpoint."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return getattr(user, "user_type", None) == "owner"

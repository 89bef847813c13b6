"""Aggregate URL patterns for the core application."""

from . import auth, booking, owner

urlpatterns = [
    *booking.urlpatterns,
    *owner.urlpatterns,
    *auth.urlpatterns,
]

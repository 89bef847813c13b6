"""Owner booking queue endpoints."""

from django.urls import path

from ..api import views

urlpatterns = [
    path("api/owner/bookings/", views.OwnerBookingQueueView.as_view(), name="owner_bookings"),
    path(
        "api/owner/bookings/summary/",
        views.OwnerBookingSummaryView.as_view(),
        name="owner_bookings_summary",
    ),
    path(
        "api/owner/bookings/<int:booking_id>/accept/",
        views.OwnerBookingAcceptView.as_view(),
        name="owner_booking_accept",
    ),
    path(
        "api/owner/bookings/<int:booking_id>/reject/",
        views.OwnerBookingRejectView.as_view(),
        name="owner_booking_reject",
    ),
    path(
        "api/owner/bookings/<int:booking_id>/refund/",
        views.OwnerRefundView.as_view(),
        name="owner_booking_refund",
    ),
]

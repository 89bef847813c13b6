"""Customer booking API endpoints."""

from django.urls import path

from ..api import views

urlpatterns = [
    path("api/bookings/", views.CustomerBookingsView.as_view(), name="customer_bookings"),
    path("api/bookings/<int:booking_id>/", views.BookingDetailView.as_view(), name="booking_detail"),
    path(
        "api/bookings/<int:booking_id>/payment/",
        views.BookingPaymentView.as_view(),
        name="booking_submit_payment",
    ),
    path(
        "api/bookings/<int:booking_id>/cancel/",
        views.BookingCancelView.as_view(),
        name="booking_cancel",
    ),
]

"""Typed failures raised by the booking services.

Each error names the invariant that blocked the operation so callers can
decide whether to retry, pick another room, or stop.
"""

from __future__ import annotations


class BookingError(Exception):
    code = "error"
    status_code = 400
    default_message = "Booking operation failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(BookingError):
    code = "invalid"
    status_code = 400
    default_message = "The request is malformed."


class NotFound(BookingError):
    code = "not_found"
    status_code = 404
    default_message = "The requested record does not exist."


class Conflict(BookingError):
    code = "conflict"
    status_code = 409
    default_message = "Not enough beds available."


class Forbidden(BookingError):
    code = "forbidden"
    status_code = 403
    default_message = "You are not allowed to act on this booking."


class InvalidState(BookingError):
    code = "invalid_state"
    status_code = 409
    default_message = "The booking is not in a state that allows this action."

import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from ..exceptions import BookingError

logger = logging.getLogger(__name__)


def booking_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, BookingError):
        view = context.get("view")
        logger.debug("%s refused: %s (%s)", type(view).__name__, exc.message, exc.code)
        return Response({"detail": exc.message, "code": exc.code}, status=exc.status_code)

    if isinstance(exc, IntegrityError):
        logger.error("Integrity error escaped the booking services: %s", exc)
        return Response(
            {"detail": "Database integrity error: " + str(exc), "code": "integrity"},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return None

"""
reservations/exceptions.py

Expected, caller-recoverable booking outcomes.

Every error is a DRF ``APIException`` so views can simply let them propagate:
``reservation_exception_handler`` renders them as ``{"code", "detail"}``
payloads with the matching HTTP status. Non-HTTP callers catch
``ReservationError``.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ReservationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Reservation request failed."
    default_code = "reservation_error"


class InvalidInput(ReservationError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid reservation request."
    default_code = "invalid_input"


class ReservationsDisabled(ReservationError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Reservations are not enabled for this restaurant."
    default_code = "reservations_disabled"


class TableUnsuitable(ReservationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Requested table cannot host this party."
    default_code = "table_unsuitable"


class NoAvailability(ReservationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "No table is available at the requested time."
    default_code = "no_availability"


class NotFound(ReservationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class InvalidTransition(ReservationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This status change is not allowed."
    default_code = "invalid_transition"


def reservation_exception_handler(exc, context):
    """DRF exception handler adding a stable ``code`` to reservation errors."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ReservationError):
        response.data = {"code": exc.default_code, "detail": exc.detail}
        logger.info(f"Reservation request rejected ({exc.default_code}): {exc.detail}")
    elif isinstance(response.data, dict) and "code" not in response.data:
        codes = exc.get_codes() if hasattr(exc, "get_codes") else None
        if isinstance(codes, str):
            response.data["code"] = codes
    return response

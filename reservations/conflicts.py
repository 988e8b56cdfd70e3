"""
Overlap checks between a candidate booking and a day's reservations.

All times are compared as minutes since midnight on half-open intervals
``[start, start + duration)``, so a booking that starts exactly when another
ends does not conflict with it.
"""

from datetime import date, datetime, time

from .exceptions import InvalidInput

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


# ==============================================================================
# Parsing & conversion
# ==============================================================================

def parse_date(value) -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid date '{value}', expected YYYY-MM-DD.")


def parse_time(value) -> time:
    """Accept a ``time`` or a 24-hour ``HH:MM`` string."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        return datetime.strptime(str(value).strip(), TIME_FORMAT).time()
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid time '{value}', expected HH:MM.")


def to_minutes(value) -> int:
    value = parse_time(value)
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


# ==============================================================================
# Overlap
# ==============================================================================

def intervals_overlap(start_a: int, duration_a: int, start_b: int, duration_b: int) -> bool:
    return start_a < start_b + duration_b and start_b < start_a + duration_a


def overlaps(table_id, on_date, candidate_start, candidate_duration, existing) -> bool:
    """
    Return True if ``existing`` holds a reservation on ``table_id`` that
    overlaps the candidate interval.

    ``existing`` is expected to be the day's pending/confirmed reservations
    of the restaurant (a queryset or any iterable of objects exposing
    ``table_id``, ``start_time`` and ``duration``). Entries on another date or
    in a non-blocking status are ignored all the same.
    """
    if candidate_duration is None or candidate_duration <= 0:
        raise InvalidInput("Reservation duration must be a positive number of minutes.")

    on_date = parse_date(on_date)
    start = to_minutes(candidate_start)

    for reservation in existing:
        if str(reservation.table_id) != str(table_id):
            continue
        reservation_date = getattr(reservation, "date", None)
        if reservation_date is not None and reservation_date != on_date:
            continue
        if not getattr(reservation, "is_blocking", True):
            continue
        if intervals_overlap(start, candidate_duration, to_minutes(reservation.start_time), reservation.duration):
            return True
    return False

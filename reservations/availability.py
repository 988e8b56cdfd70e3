"""
Availability read path: slot generation and table selection.

These functions take no locks. Their answers are advisory (for display) and
may be stale by the time a guest books; ``reservations.booking.book``
re-validates everything inside its transaction.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.utils import timezone

from . import selectors
from .conflicts import minutes_to_time, overlaps, parse_date, to_minutes
from .models import Table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    start_time: time
    is_available: bool
    available_tables: int = 0

    @property
    def label(self):
        return f"{self.start_time:%H:%M}"


@dataclass(frozen=True)
class TableAvailability:
    table: Table
    is_available: bool


# ==============================================================================
# Clock helpers
# ==============================================================================

def restaurant_tz(restaurant):
    try:
        return ZoneInfo(restaurant.timezone or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{restaurant.timezone}' for restaurant {restaurant.pk}; using UTC.")
        return ZoneInfo("UTC")


def local_now(restaurant, now=None) -> datetime:
    """Current wall-clock time at the restaurant."""
    now = now or timezone.now()
    if timezone.is_naive(now):
        now = timezone.make_aware(now, ZoneInfo("UTC"))
    return now.astimezone(restaurant_tz(restaurant))


def candidate_starts(config):
    """
    Start minutes from opening to ``closing - slot`` inclusive, one slot apart.

    A slot that would run past closing time is never offered.
    """
    opening = to_minutes(config.working_hours_start)
    closing = to_minutes(config.working_hours_end)
    step = config.slot_minutes
    return list(range(opening, closing - step + 1, step))


def _is_free(table, on_date, start, duration, reservations):
    return not overlaps(table.pk, on_date, start, duration, reservations)


# ==============================================================================
# Slot generator
# ==============================================================================

def generate_slots(restaurant_id, on_date, party_size, now=None):
    """
    Ordered ``Slot`` list for ``on_date``; unavailable slots are included.

    An empty list means there is no capacity for this party size at all
    (or the date is already over); it is not an error.
    """
    config = selectors.get_config(restaurant_id)
    on_date = parse_date(on_date)

    try:
        party_size = int(party_size)
    except (TypeError, ValueError):
        return []
    if party_size < 1:
        return []

    tables = selectors.list_suitable_tables(restaurant_id, party_size)
    if not tables:
        logger.debug(f"No table seats {party_size} at restaurant {restaurant_id}.")
        return []

    today = local_now(config.restaurant, now)
    if on_date < today.date():
        return []
    earliest = today.hour * 60 + today.minute if on_date == today.date() else -1

    reservations = selectors.list_reservations(restaurant_id, on_date)
    duration = config.slot_minutes

    slots = []
    for start in candidate_starts(config):
        if start <= earliest:
            continue
        start_time = minutes_to_time(start)
        free = sum(1 for table in tables if _is_free(table, on_date, start_time, duration, reservations))
        slots.append(Slot(start_time=start_time, is_available=free > 0, available_tables=free))

    logger.debug(
        f"Generated {len(slots)} slots for restaurant {restaurant_id} on {on_date} "
        f"(party of {party_size}, {sum(s.is_available for s in slots)} available)"
    )
    return slots


# ==============================================================================
# Table selector
# ==============================================================================

def available_tables(restaurant_id, on_date, start_time, party_size):
    """
    Every suitable table, smallest first, annotated with availability.

    Ordering is ``(capacity, sort_order, id)`` which is also the order the
    booking transaction tries tables in when none is requested.
    """
    config = selectors.get_config(restaurant_id)
    on_date = parse_date(on_date)

    try:
        party_size = int(party_size)
    except (TypeError, ValueError):
        return []
    if party_size < 1:
        return []

    tables = selectors.list_suitable_tables(restaurant_id, party_size)
    reservations = selectors.list_reservations(restaurant_id, on_date)
    return [
        TableAvailability(
            table=table,
            is_available=_is_free(table, on_date, start_time, config.slot_minutes, reservations),
        )
        for table in tables
    ]


def pick_table(tables, on_date, start_time, duration, reservations):
    """First conflict-free table of ``tables`` (already in preference order), or None."""
    for table in tables:
        if _is_free(table, on_date, start_time, duration, reservations):
            return table
    return None


def is_within_hours(config, start_time, duration) -> bool:
    start = to_minutes(start_time)
    return to_minutes(config.working_hours_start) <= start and start + duration <= to_minutes(config.working_hours_end)


def is_past(restaurant, on_date: date, start_time, now=None) -> bool:
    current = local_now(restaurant, now)
    if on_date != current.date():
        return on_date < current.date()
    return to_minutes(start_time) <= current.hour * 60 + current.minute

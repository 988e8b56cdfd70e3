"""
reservations/booking.py

The booking transaction: the only code path that creates reservations.

Preconditions are checked in a fixed order, each failing with its own error
type (see ``reservations.exceptions``). Table selection, the final conflict
re-check and the insert all happen inside one ``transaction.atomic()`` block
with the candidate table rows locked (``select_for_update``), so two
concurrent bookings of the same table are serialized: the second one waits
for the first to commit and then sees its reservation. Identical
``(table, date, start_time)`` rows are additionally rejected by the
``unique_active_table_slot`` constraint.
"""

import logging
from dataclasses import dataclass
from functools import partial

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, OperationalError, transaction

from . import notifications, selectors
from .availability import is_past, is_within_hours, pick_table
from .conf import get_setting
from .conflicts import overlaps, parse_date, parse_time
from .exceptions import (
    InvalidInput,
    NoAvailability,
    NotFound,
    ReservationsDisabled,
    TableUnsuitable,
)
from .models import Reservation, Table, phone_regex

logger = logging.getLogger(__name__)


@dataclass
class GuestDetails:
    name: str
    email: str
    phone: str = ""
    notes: str = ""
    language: str = "en"

    FIELD_NAMES = {
        "name": "guestName",
        "email": "guestEmail",
        "phone": "guestPhone",
        "notes": "notes",
        "language": "language",
    }

    def clean(self):
        """Normalise fields in place; raise ``InvalidInput`` listing every bad field."""
        errors = {}
        for attr, key in self.FIELD_NAMES.items():
            value = getattr(self, attr)
            if value is None:
                value = ""
            if not isinstance(value, str):
                errors[key] = "Must be a string."
                value = ""
            setattr(self, attr, value.strip())
        self.language = self.language[:10] or "en"

        if not self.name:
            errors.setdefault("guestName", "Guest name is required.")
        elif len(self.name) > 120:
            errors["guestName"] = "Guest name is too long."

        if not self.email:
            errors.setdefault("guestEmail", "Guest email is required.")
        else:
            try:
                validate_email(self.email)
            except ValidationError:
                errors["guestEmail"] = "Enter a valid email address."

        if self.phone:
            try:
                phone_regex(self.phone)
            except ValidationError as exc:
                errors["guestPhone"] = exc.messages[0]

        limit = get_setting("NOTES_MAX_LENGTH")
        if len(self.notes) > limit:
            errors["notes"] = f"Notes are limited to {limit} characters."

        if errors:
            raise InvalidInput(errors)
        return self


def _parse_party_size(value):
    try:
        party_size = int(value)
    except (TypeError, ValueError):
        raise InvalidInput({"partySize": "Party size must be a whole number."})
    max_party = get_setting("MAX_PARTY_SIZE")
    if not 1 <= party_size <= max_party:
        raise InvalidInput({"partySize": f"Party size must be between 1 and {max_party}."})
    return party_size


def _parse_duration(value, default):
    if value in (None, ""):
        return default
    try:
        duration = int(value)
    except (TypeError, ValueError):
        raise InvalidInput({"duration": "Duration must be a number of minutes."})
    if duration <= 0:
        raise InvalidInput({"duration": "Duration must be a positive number of minutes."})
    return duration


def _lock_requested_table(restaurant_id, table_id, party_size):
    try:
        table = Table.objects.select_for_update().get(pk=table_id, restaurant_id=restaurant_id)
    except (Table.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Table {table_id} does not exist in this restaurant.")
    if not table.is_active:
        raise TableUnsuitable(f"Table {table.number} is not taking reservations.")
    if table.capacity < party_size:
        raise TableUnsuitable(f"Table {table.number} seats {table.capacity}, party of {party_size} requested.")
    return table


def _lock_suitable_tables(restaurant_id, party_size):
    # Rows are locked in assignment order so concurrent bookings acquire them consistently.
    return list(
        Table.objects.select_for_update()
        .filter(restaurant_id=restaurant_id)
        .suitable_for(party_size)
    )


def _conflicts_now(table, on_date, start_time, duration):
    existing = Reservation.objects.blocking().filter(table=table, date=on_date)
    return overlaps(table.pk, on_date, start_time, duration, existing)


def book(restaurant_id, *, date, start_time, party_size, guest, table_id=None, duration=None, now=None):
    """
    Create a reservation or raise a ``ReservationError``.

    ``date`` and ``start_time`` may be ``date``/``time`` objects or their
    ``YYYY-MM-DD`` / ``HH:MM`` wire forms. ``guest`` is a ``GuestDetails``.
    When ``table_id`` is omitted the smallest free suitable table is assigned.
    ``duration`` defaults to the restaurant's current slot length and is
    stored on the reservation so later schedule edits do not alter it.
    """
    # 0-1. Restaurant exists and takes reservations
    config = selectors.get_config(restaurant_id)
    restaurant = config.restaurant
    if not config.reservations_enabled:
        raise ReservationsDisabled()

    # 2. Well-formed, in-hours request
    on_date = parse_date(date)
    start = parse_time(start_time)
    party_size = _parse_party_size(party_size)
    duration = _parse_duration(duration, config.slot_minutes)
    guest.clean()

    if not is_within_hours(config, start, duration):
        raise InvalidInput(
            f"{start:%H:%M} for {duration} minutes is outside working hours "
            f"{config.working_hours_start:%H:%M}-{config.working_hours_end:%H:%M}."
        )
    if is_past(restaurant, on_date, start, now):
        raise InvalidInput("Reservations cannot be made for a time that has already passed.")

    # 3-5. Select, re-check and insert under row locks
    try:
        with transaction.atomic():
            if table_id not in (None, ""):
                table = _lock_requested_table(restaurant.pk, table_id, party_size)
            else:
                candidates = _lock_suitable_tables(restaurant.pk, party_size)
                existing = selectors.list_reservations(restaurant.pk, on_date)
                table = pick_table(candidates, on_date, start, duration, existing)
                if table is None:
                    raise NoAvailability()

            if _conflicts_now(table, on_date, start, duration):
                raise NoAvailability(f"Table {table.number} is already booked at {start:%H:%M}.")

            reservation = Reservation.objects.create(
                restaurant=restaurant,
                table=table,
                date=on_date,
                start_time=start,
                duration=duration,
                guests_count=party_size,
                guest_name=guest.name,
                guest_email=guest.email,
                guest_phone=guest.phone,
                notes=guest.notes,
                language=guest.language,
                status=config.initial_status,
            )
            transaction.on_commit(partial(notifications.reservation_created, reservation))
    except IntegrityError:
        logger.warning(
            f"Concurrent booking lost the race for restaurant {restaurant.pk} "
            f"on {on_date} {start:%H:%M}."
        )
        raise NoAvailability("The table was booked by someone else a moment ago.")
    except OperationalError as exc:
        # Lock wait timed out behind other bookings; anything else is a real fault.
        if "locked" not in str(exc):
            raise
        logger.warning(
            f"Booking for restaurant {restaurant.pk} on {on_date} {start:%H:%M} "
            f"gave up waiting for the table lock: {exc}"
        )
        raise NoAvailability("The table is being booked by someone else, please try again.")

    logger.info(
        f"🆕 Reservation {reservation.pk} ({reservation.status}) for {party_size} guests "
        f"at table {table.number}, {on_date} {start:%H:%M} ({duration}min)."
    )
    return reservation

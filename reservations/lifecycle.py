"""
Reservation status state machine.

    pending ──approve──▶ confirmed ──(after the slot, sweep)──▶ completed
       │                    │
       └──reject/cancel──▶ cancelled ◀──cancel (before the slot)

``cancelled`` and ``completed`` are terminal. Only pending/confirmed
reservations hold a table, so cancelling frees the slot immediately.
"""

import logging
from datetime import timedelta
from functools import partial

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from . import notifications
from .availability import local_now, restaurant_tz
from .exceptions import InvalidTransition, NotFound
from .models import Reservation

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")

Status = Reservation.Status

TRANSITIONS = {
    Status.PENDING: {Status.CONFIRMED, Status.CANCELLED},
    Status.CONFIRMED: {Status.CANCELLED, Status.COMPLETED},
    Status.CANCELLED: set(),
    Status.COMPLETED: set(),
}

# What the staff status-change endpoint may do; completion is left to the sweep.
STAFF_TRANSITIONS = {
    (Status.PENDING, Status.CONFIRMED),
    (Status.PENDING, Status.CANCELLED),
    (Status.CONFIRMED, Status.CANCELLED),
}

GUEST_TRANSITIONS = {
    (Status.PENDING, Status.CANCELLED),
    (Status.CONFIRMED, Status.CANCELLED),
}

ACTOR_TRANSITIONS = {
    "staff": STAFF_TRANSITIONS,
    "guest": GUEST_TRANSITIONS,
}


def can_transition(current, new_status, actor=None) -> bool:
    if new_status not in TRANSITIONS.get(current, set()):
        return False
    if actor is None:
        return True
    return (current, new_status) in ACTOR_TRANSITIONS.get(actor, set())


def transition(reservation_id, new_status, actor="staff", restaurant_id=None, by=None, now=None, notes=None):
    """
    Move a reservation to ``new_status`` and return it.

    The row is locked for the duration of the change so two staff members
    acting at once cannot, e.g., confirm a reservation that was just
    cancelled. ``restaurant_id`` scopes the lookup for staff callers. When
    ``notes`` is given it replaces the reservation notes in the same save.
    """
    if new_status not in Status.values:
        raise InvalidTransition(f"Unknown status '{new_status}'.")
    new_status = str(new_status)

    with transaction.atomic():
        queryset = Reservation.objects.select_for_update().select_related("restaurant", "table")
        if restaurant_id is not None:
            queryset = queryset.filter(restaurant_id=restaurant_id)
        try:
            reservation = queryset.get(pk=reservation_id)
        except (Reservation.DoesNotExist, ValidationError, ValueError, TypeError):
            raise NotFound(f"Reservation {reservation_id} does not exist.")

        previous = reservation.status
        if not can_transition(previous, new_status, actor):
            raise InvalidTransition(f"Cannot change a {previous} reservation to {new_status}.")

        if actor == "guest" and previous == Status.CONFIRMED:
            current = local_now(reservation.restaurant, now)
            if reservation.starts_at(restaurant_tz(reservation.restaurant)) <= current:
                raise InvalidTransition("A reservation can only be cancelled before it starts.")

        reservation.status = new_status
        update_fields = ["status", "updated_at"]
        if notes is not None:
            reservation.notes = notes.strip()
            update_fields.append("notes")
        reservation.save(update_fields=update_fields)
        transaction.on_commit(partial(notifications.status_changed, reservation, previous))

    who = getattr(by, "username", None) or actor
    audit_logger.info(
        f"Reservation {reservation.pk} {previous} → {new_status} by {who} "
        f"at {timezone.now():%Y-%m-%d %H:%M}"
    )
    return reservation


def complete_past_reservations(now=None):
    """
    Mark confirmed reservations whose slot has ended as completed.

    Housekeeping job; never called from the booking path. Returns the number
    of reservations updated.
    """
    now = now or timezone.now()
    completed = 0
    candidates = (
        Reservation.objects.filter(status=Status.CONFIRMED, date__lte=now.date() + timedelta(days=1))
        .select_related("restaurant")
        .order_by("date", "start_time")
    )
    for reservation in candidates.iterator():
        tz = restaurant_tz(reservation.restaurant)
        if reservation.ends_at(tz) > now.astimezone(tz):
            continue
        updated = Reservation.objects.filter(pk=reservation.pk, status=Status.CONFIRMED).update(
            status=Status.COMPLETED, updated_at=timezone.now()
        )
        completed += updated

    if completed:
        logger.info(f"✅ Marked {completed} past reservations as completed.")
    return completed

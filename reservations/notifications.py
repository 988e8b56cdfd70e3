"""
reservations/notifications.py

Side effects fired after a reservation is committed or changes status:

* an e-mail to the guest, in the language they booked in,
* an e-mail to the restaurant's owners/managers, each in their own language,
* a broadcast to the restaurant's live dashboard group over Django Channels.

Callers register these with ``transaction.on_commit``. Nothing here may
raise back into the booking: every failure is logged and swallowed. When
``RESERVATIONS["ASYNC_NOTIFICATIONS"]`` is on, work is handed to a small
thread pool so the request does not wait on SMTP.
"""

import atexit
import logging
from concurrent.futures import ThreadPoolExecutor

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.mail import send_mail
from django.db import close_old_connections
from django.template.loader import render_to_string
from django.utils import translation

from .conf import get_setting
from .selectors import owner_recipients

logger = logging.getLogger(__name__)

_executor = None


def _get_executor():
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=get_setting("NOTIFICATION_WORKERS"),
            thread_name_prefix="reservation-notify",
        )
    return _executor


def dashboard_group(restaurant_id):
    return f"reservations_{restaurant_id}"


def _log_failure(future):
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error(f"Background reservation notification failed: {exc}", exc_info=exc)


def _run_in_background(func, *args):
    def job():
        try:
            func(*args)
        finally:
            close_old_connections()

    future = _get_executor().submit(job)
    future.add_done_callback(_log_failure)
    return future


def shutdown(wait=True):
    """Stop the notification pool, letting queued e-mails finish when ``wait``."""
    global _executor
    executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait)


atexit.register(shutdown)


def dispatch(func, *args):
    """Run ``func`` now or on the notification pool; never raises."""
    try:
        if get_setting("ASYNC_NOTIFICATIONS"):
            _run_in_background(func, *args)
        else:
            func(*args)
    except Exception as exc:
        logger.error(f"Reservation notification dispatch failed: {exc}", exc_info=True)


# ==============================================================================
# Payloads
# ==============================================================================

def reservation_payload(reservation, event):
    return {
        "event": event,
        "reservation": {
            "id": str(reservation.pk),
            "table_id": reservation.table_id,
            "table_number": reservation.table.number,
            "date": reservation.date.isoformat(),
            "start_time": f"{reservation.start_time:%H:%M}",
            "duration": reservation.duration,
            "guests_count": reservation.guests_count,
            "guest_name": reservation.guest_name,
            "status": reservation.status,
        },
    }


def _render(template, reservation, language, **extra):
    context = {
        "reservation": reservation,
        "restaurant": reservation.restaurant,
        "table": reservation.table,
        "zone": reservation.table.zone_for(language),
        **extra,
    }
    with translation.override(language):
        subject = render_to_string(f"reservations/email/{template}_subject.txt", context).strip()
        body = render_to_string(f"reservations/email/{template}.txt", context)
    return subject, body


# ==============================================================================
# Individual channels
# ==============================================================================

def notify_guest(reservation, template, **extra):
    try:
        subject, body = _render(template, reservation, reservation.language, **extra)
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [reservation.guest_email])
        logger.info(f"📧 Sent '{template}' e-mail to guest of reservation {reservation.pk}.")
    except Exception as exc:
        logger.error(f"Guest e-mail for reservation {reservation.pk} failed: {exc}", exc_info=True)


def notify_owners(reservation, template, **extra):
    recipients = []
    try:
        recipients = list(owner_recipients(reservation.restaurant))
        if not recipients and reservation.restaurant.email:
            # Fall back to the restaurant's contact address.
            subject, body = _render(template, reservation, reservation.restaurant.default_language, **extra)
            send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [reservation.restaurant.email])
            return
    except Exception as exc:
        logger.error(f"Owner lookup for reservation {reservation.pk} failed: {exc}", exc_info=True)
        return

    for user in recipients:
        try:
            language = user.preferred_language or reservation.restaurant.default_language
            subject, body = _render(template, reservation, language, recipient=user, **extra)
            send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [user.email])
        except Exception as exc:
            logger.error(
                f"Owner e-mail to {user.email} for reservation {reservation.pk} failed: {exc}",
                exc_info=True,
            )


def broadcast(reservation, event):
    try:
        layer = get_channel_layer()
        if not layer:
            logger.warning("⚠️ Channels layer not found. Skipping real-time broadcast.")
            return
        async_to_sync(layer.group_send)(
            dashboard_group(reservation.restaurant_id),
            {"type": "reservation_update", "data": reservation_payload(reservation, event)},
        )
    except Exception as exc:
        logger.error(f"Reservation broadcast failed: {exc}", exc_info=True)


# ==============================================================================
# Entry points (registered with transaction.on_commit)
# ==============================================================================

def _send_created(reservation):
    notify_guest(reservation, "guest_created")
    notify_owners(reservation, "owner_created")
    broadcast(reservation, "reservation_created")


def _send_status_changed(reservation, previous_status):
    notify_guest(reservation, "guest_status", previous_status=previous_status)
    broadcast(reservation, "reservation_status_changed")


def reservation_created(reservation):
    dispatch(_send_created, reservation)


def status_changed(reservation, previous_status):
    dispatch(_send_status_changed, reservation, previous_status)

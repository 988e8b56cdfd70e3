from datetime import time, timedelta
from itertools import count

from django.test import override_settings
from django.utils import timezone

from reservations.booking import GuestDetails
from reservations.models import CustomUser, Reservation, Restaurant, ScheduleConfig, Table

_seq = count(1)

SYNC_NOTIFICATIONS = override_settings(RESERVATIONS={"ASYNC_NOTIFICATIONS": False})


def future_date(days=30):
    return timezone.now().date() + timedelta(days=days)


def make_restaurant(name="Chez Test", enabled=True, mode=ScheduleConfig.Mode.AUTO,
                    start=time(10, 0), end=time(22, 0), slot=90, **kwargs):
    n = next(_seq)
    kwargs.setdefault("email", f"hello{n}@chez.test")
    restaurant = Restaurant.objects.create(name=name, slug=f"chez-test-{n}", **kwargs)
    ScheduleConfig.objects.create(
        restaurant=restaurant,
        working_hours_start=start,
        working_hours_end=end,
        slot_minutes=slot,
        mode=mode,
        reservations_enabled=enabled,
    )
    return restaurant


def make_table(restaurant, number, capacity, **kwargs):
    return Table.objects.create(restaurant=restaurant, number=number, capacity=capacity, **kwargs)


def make_reservation(table, on_date, start, duration=90, status=Reservation.Status.CONFIRMED, **kwargs):
    kwargs.setdefault("guests_count", 2)
    kwargs.setdefault("guest_name", "Existing Guest")
    kwargs.setdefault("guest_email", "existing@guest.test")
    return Reservation.objects.create(
        restaurant=table.restaurant,
        table=table,
        date=on_date,
        start_time=start,
        duration=duration,
        status=status,
        **kwargs,
    )


def make_user(restaurant=None, role=CustomUser.Roles.OWNER, **kwargs):
    n = next(_seq)
    kwargs.setdefault("username", f"user{n}")
    kwargs.setdefault("email", f"user{n}@chez.test")
    return CustomUser.objects.create_user(
        password="password123", role=role, restaurant=restaurant, **kwargs
    )


def guest(**overrides):
    data = {"name": "Ada Lovelace", "email": "ada@guest.test", "phone": "+33612345678", "language": "en"}
    data.update(overrides)
    return GuestDetails(**data)

"""
Read-only queries the engine consumes from the surrounding application.

Nothing here is cached: configuration and tables are read at request time so
staff edits apply to the very next request.
"""

from .exceptions import NotFound
from .models import CustomUser, Reservation, Restaurant, ScheduleConfig, Table


def get_restaurant(restaurant_id) -> Restaurant:
    try:
        return Restaurant.objects.get(pk=restaurant_id)
    except (Restaurant.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Restaurant {restaurant_id} does not exist.")


def get_config(restaurant_id) -> ScheduleConfig:
    """Schedule of ``restaurant_id``; a restaurant without one gets the defaults (disabled)."""
    restaurant = get_restaurant(restaurant_id)
    try:
        return ScheduleConfig.objects.select_related("restaurant").get(restaurant=restaurant)
    except ScheduleConfig.DoesNotExist:
        return ScheduleConfig(restaurant=restaurant)


def list_active_tables(restaurant_id):
    return Table.objects.filter(restaurant_id=restaurant_id).active()


def list_suitable_tables(restaurant_id, party_size):
    return list(list_active_tables(restaurant_id).suitable_for(party_size))


def list_reservations(restaurant_id, on_date, statuses=Reservation.BLOCKING_STATUSES):
    return list(
        Reservation.objects.filter(
            restaurant_id=restaurant_id, date=on_date, status__in=list(statuses)
        ).only("id", "table_id", "date", "start_time", "duration", "status")
    )


def owner_recipients(restaurant):
    """Owners and managers who receive reservation notifications."""
    return CustomUser.objects.filter(
        restaurant=restaurant,
        is_active=True,
        role__in=[CustomUser.Roles.OWNER, CustomUser.Roles.MANAGER],
    ).exclude(email="")

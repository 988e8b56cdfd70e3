# reservations/apps.py

from django.apps import AppConfig


class ReservationsConfig(AppConfig):
    """App configuration for the reservation booking engine."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'reservations'
    verbose_name = "Reservations"

from django.conf import settings

DEFAULTS = {
    "MAX_PARTY_SIZE": 50,
    "NOTES_MAX_LENGTH": 500,
    "ASYNC_NOTIFICATIONS": True,
    "NOTIFICATION_WORKERS": 2,
}


def get_setting(name):
    """Read ``settings.RESERVATIONS[name]``, falling back to ``DEFAULTS``."""
    return getattr(settings, "RESERVATIONS", {}).get(name, DEFAULTS[name])

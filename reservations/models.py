import uuid
from datetime import datetime, time, timedelta

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxLengthValidator, MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q

# =============================================================================
# === USER & STAFF SYSTEM =====================================================
# =============================================================================

phone_regex = RegexValidator(
    regex=r'^\+?1?\d{9,15}$',
    message="Use international format: +999999999. Up to 15 digits."
)


class CustomUser(AbstractUser):
    class Roles(models.TextChoices):
        OWNER = 'OWNER', 'Owner'
        MANAGER = 'MANAGER', 'Manager'
        HOST = 'HOST', 'Host'
        STAFF = 'STAFF', 'General Staff'

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.STAFF)
    restaurant = models.ForeignKey(
        "Restaurant", null=True, blank=True, on_delete=models.SET_NULL, related_name="staff"
    )
    preferred_language = models.CharField(max_length=10, default="en")

    def __str__(self):
        return f"{self.username} ({self.role})"

    def works_at(self, restaurant_id) -> bool:
        """True for superusers and for staff assigned to ``restaurant_id``."""
        if self.is_superuser:
            return True
        return self.restaurant_id is not None and str(self.restaurant_id) == str(restaurant_id)


# =============================================================================
# === RESTAURANT & SCHEDULE ===================================================
# =============================================================================

class Restaurant(models.Model):
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120, unique=True)
    email = models.EmailField(blank=True)
    timezone = models.CharField(max_length=64, default="UTC")
    default_language = models.CharField(max_length=10, default="en")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class ScheduleConfig(models.Model):
    """Working hours and booking policy of one restaurant."""

    class Mode(models.TextChoices):
        AUTO = 'auto', 'Confirm automatically'
        MANUAL = 'manual', 'Owner approval'

    SLOT_CHOICES = [(60, "60 minutes"), (90, "90 minutes"), (120, "120 minutes")]

    restaurant = models.OneToOneField(
        Restaurant, on_delete=models.CASCADE, related_name="schedule"
    )
    working_hours_start = models.TimeField(default=time(10, 0))
    working_hours_end = models.TimeField(default=time(22, 0))
    slot_minutes = models.PositiveSmallIntegerField(choices=SLOT_CHOICES, default=90)
    mode = models.CharField(max_length=10, choices=Mode.choices, default=Mode.MANUAL)
    reservations_enabled = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Schedule configuration"

    def __str__(self):
        return (
            f"{self.restaurant.name}: {self.working_hours_start:%H:%M}-"
            f"{self.working_hours_end:%H:%M} / {self.slot_minutes}min ({self.mode})"
        )

    @property
    def initial_status(self):
        if self.mode == self.Mode.AUTO:
            return Reservation.Status.CONFIRMED
        return Reservation.Status.PENDING


# =============================================================================
# === TABLES ==================================================================
# =============================================================================

class TableQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def suitable_for(self, party_size):
        """Active tables that seat ``party_size``, in auto-assignment order."""
        return self.active().filter(capacity__gte=party_size).order_by(
            "capacity", "sort_order", "pk"
        )


class Table(models.Model):
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name='tables')
    number = models.CharField(max_length=10)
    capacity = models.PositiveIntegerField(default=2, validators=[MinValueValidator(1)])
    zone = models.CharField(max_length=60, blank=True)
    # {"fr": {"zone": "Terrasse"}, ...}
    translations = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0)

    objects = TableQuerySet.as_manager()

    class Meta:
        ordering = ['restaurant', 'sort_order', 'number']
        constraints = [
            models.UniqueConstraint(fields=["restaurant", "number"], name="unique_table_number"),
            models.CheckConstraint(condition=Q(capacity__gte=1), name="table_capacity_positive"),
        ]

    def __str__(self):
        return f"{self.restaurant.name} - Table {self.number} ({self.capacity} seats)"

    def save(self, *args, **kwargs):
        self.number = str(self.number).upper().strip()
        super().save(*args, **kwargs)

    def zone_for(self, locale=None):
        """Zone label in ``locale``, falling back to the default ``zone``."""
        if locale:
            override = (self.translations or {}).get(locale) or {}
            if override.get("zone"):
                return override["zone"]
        return self.zone


# =============================================================================
# === RESERVATIONS ============================================================
# =============================================================================

class ReservationQuerySet(models.QuerySet):
    def blocking(self):
        """Reservations that still hold their table."""
        return self.filter(status__in=Reservation.BLOCKING_STATUSES)


class Reservation(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'

    BLOCKING_STATUSES = (Status.PENDING, Status.CONFIRMED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(Restaurant, on_delete=models.PROTECT, related_name='reservations')
    table = models.ForeignKey(Table, on_delete=models.PROTECT, related_name='reservations')
    date = models.DateField()
    start_time = models.TimeField()
    duration = models.PositiveSmallIntegerField(help_text="Minutes, fixed at booking time.")
    guests_count = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    guest_name = models.CharField(max_length=120)
    guest_email = models.EmailField()
    guest_phone = models.CharField(validators=[phone_regex], max_length=17, blank=True)
    notes = models.TextField(blank=True, validators=[MaxLengthValidator(500)])
    language = models.CharField(max_length=10, default="en")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        ordering = ["-date", "-start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=["table", "date", "start_time"],
                condition=Q(status__in=["pending", "confirmed"]),
                name="unique_active_table_slot",
            ),
            models.CheckConstraint(condition=Q(duration__gt=0), name="reservation_duration_positive"),
            models.CheckConstraint(condition=Q(guests_count__gte=1), name="reservation_guests_positive"),
        ]
        indexes = [
            models.Index(fields=["restaurant", "date"], name="resv_restaurant_date_idx"),
        ]

    def __str__(self):
        return f"{self.guest_name} · {self.date} {self.start_time:%H:%M} · Table {self.table.number}"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_duration = instance.__dict__.get("duration")
        return instance

    def save(self, *args, **kwargs):
        loaded = getattr(self, "_loaded_duration", None)
        if loaded is not None and self.duration != loaded:
            raise ValueError("Reservation duration cannot change after creation.")
        super().save(*args, **kwargs)
        self._loaded_duration = self.duration

    @property
    def is_blocking(self):
        return self.status in self.BLOCKING_STATUSES

    @property
    def end_time(self):
        return (datetime.combine(self.date, self.start_time) + timedelta(minutes=self.duration)).time()

    def starts_at(self, tz):
        return datetime.combine(self.date, self.start_time, tzinfo=tz)

    def ends_at(self, tz):
        return self.starts_at(tz) + timedelta(minutes=self.duration)

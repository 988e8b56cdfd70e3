import uuid
import datetime

import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Restaurant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("slug", models.SlugField(max_length=120, unique=True)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("timezone", models.CharField(default="UTC", max_length=64)),
                ("default_language", models.CharField(default="en", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="CustomUser",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("role", models.CharField(choices=[("OWNER", "Owner"), ("MANAGER", "Manager"), ("HOST", "Host"), ("STAFF", "General Staff")], default="STAFF", max_length=20)),
                ("preferred_language", models.CharField(default="en", max_length=10)),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
                ("restaurant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="staff", to="reservations.restaurant")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="ScheduleConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("working_hours_start", models.TimeField(default=datetime.time(10, 0))),
                ("working_hours_end", models.TimeField(default=datetime.time(22, 0))),
                ("slot_minutes", models.PositiveSmallIntegerField(choices=[(60, "60 minutes"), (90, "90 minutes"), (120, "120 minutes")], default=90)),
                ("mode", models.CharField(choices=[("auto", "Confirm automatically"), ("manual", "Owner approval")], default="manual", max_length=10)),
                ("reservations_enabled", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("restaurant", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="schedule", to="reservations.restaurant")),
            ],
            options={
                "verbose_name": "Schedule configuration",
            },
        ),
        migrations.CreateModel(
            name="Table",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=10)),
                ("capacity", models.PositiveIntegerField(default=2, validators=[django.core.validators.MinValueValidator(1)])),
                ("zone", models.CharField(blank=True, max_length=60)),
                ("translations", models.JSONField(blank=True, default=dict)),
                ("is_active", models.BooleanField(default=True)),
                ("sort_order", models.IntegerField(default=0)),
                ("restaurant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tables", to="reservations.restaurant")),
            ],
            options={
                "ordering": ["restaurant", "sort_order", "number"],
                "constraints": [
                    models.UniqueConstraint(fields=("restaurant", "number"), name="unique_table_number"),
                    models.CheckConstraint(condition=models.Q(("capacity__gte", 1)), name="table_capacity_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("date", models.DateField()),
                ("start_time", models.TimeField()),
                ("duration", models.PositiveSmallIntegerField(help_text="Minutes, fixed at booking time.")),
                ("guests_count", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("guest_name", models.CharField(max_length=120)),
                ("guest_email", models.EmailField(max_length=254)),
                ("guest_phone", models.CharField(blank=True, max_length=17, validators=[django.core.validators.RegexValidator(message="Use international format: +999999999. Up to 15 digits.", regex="^\\+?1?\\d{9,15}$")])),
                ("notes", models.TextField(blank=True, validators=[django.core.validators.MaxLengthValidator(500)])),
                ("language", models.CharField(default="en", max_length=10)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled"), ("completed", "Completed")], default="pending", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("restaurant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reservations", to="reservations.restaurant")),
                ("table", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reservations", to="reservations.table")),
            ],
            options={
                "ordering": ["-date", "-start_time"],
                "indexes": [
                    models.Index(fields=["restaurant", "date"], name="resv_restaurant_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("status__in", ["pending", "confirmed"])), fields=("table", "date", "start_time"), name="unique_active_table_slot"),
                    models.CheckConstraint(condition=models.Q(("duration__gt", 0)), name="reservation_duration_positive"),
                    models.CheckConstraint(condition=models.Q(("guests_count__gte", 1)), name="reservation_guests_positive"),
                ],
            },
        ),
    ]

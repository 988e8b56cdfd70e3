from datetime import time

from django.core.management.base import BaseCommand
from django.db import transaction

from reservations.models import CustomUser, Restaurant, ScheduleConfig, Table

DEMO_TABLES = [
    # number, capacity, zone, translations
    ("A1", 2, "Window", {"fr": {"zone": "Fenêtre"}, "es": {"zone": "Ventana"}}),
    ("A2", 2, "Window", {"fr": {"zone": "Fenêtre"}, "es": {"zone": "Ventana"}}),
    ("B1", 4, "Main hall", {"fr": {"zone": "Salle principale"}}),
    ("B2", 4, "Main hall", {"fr": {"zone": "Salle principale"}}),
    ("C1", 6, "Terrace", {"fr": {"zone": "Terrasse"}, "de": {"zone": "Terrasse"}}),
    ("P1", 10, "Private room", {"fr": {"zone": "Salon privé"}}),
]


class Command(BaseCommand):
    help = 'Seed the database with a demo restaurant that accepts online reservations'

    def add_arguments(self, parser):
        parser.add_argument("--slug", default="demo-bistro")
        parser.add_argument("--mode", choices=[m for m, _ in ScheduleConfig.Mode.choices], default=ScheduleConfig.Mode.AUTO)
        parser.add_argument("--password", default="password")

    @transaction.atomic
    def handle(self, *args, **options):
        restaurant, created = Restaurant.objects.get_or_create(
            slug=options["slug"],
            defaults={"name": "Demo Bistro", "email": "bookings@demo-bistro.test", "timezone": "Europe/Paris"},
        )
        if not created:
            self.stdout.write(self.style.WARNING(f"Restaurant '{restaurant.slug}' already exists, updating it"))

        ScheduleConfig.objects.update_or_create(
            restaurant=restaurant,
            defaults={
                "working_hours_start": time(12, 0),
                "working_hours_end": time(23, 0),
                "slot_minutes": 90,
                "mode": options["mode"],
                "reservations_enabled": True,
            },
        )

        for order, (number, capacity, zone, translations) in enumerate(DEMO_TABLES):
            Table.objects.update_or_create(
                restaurant=restaurant,
                number=number,
                defaults={"capacity": capacity, "zone": zone, "translations": translations, "sort_order": order},
            )
            self.stdout.write(f"Table {number}: {capacity} seats ({zone})")

        owner_name = f"{restaurant.slug}-owner"
        if not CustomUser.objects.filter(username=owner_name).exists():
            CustomUser.objects.create_user(
                username=owner_name,
                email=f"owner@{restaurant.slug}.test",
                password=options["password"],
                role=CustomUser.Roles.OWNER,
                restaurant=restaurant,
                is_staff=True,
            )
            self.stdout.write(f"Owner account: {owner_name}")

        self.stdout.write(self.style.SUCCESS(
            f'Successfully seeded "{restaurant.name}" (id={restaurant.pk}) with {len(DEMO_TABLES)} tables'
        ))

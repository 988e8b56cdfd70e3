from django.core.management.base import BaseCommand

from reservations.lifecycle import complete_past_reservations


class Command(BaseCommand):
    help = 'Mark confirmed reservations whose time slot has ended as completed (run from cron)'

    def handle(self, *args, **options):
        count = complete_past_reservations()
        self.stdout.write(self.style.SUCCESS(f"Completed {count} reservation(s)"))

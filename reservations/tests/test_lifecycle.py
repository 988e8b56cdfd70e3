from datetime import date, datetime, time, timezone as dt_timezone
from io import StringIO

from django.core import mail
from django.core.management import call_command
from django.test import TestCase

from reservations import lifecycle
from reservations.exceptions import InvalidTransition, NotFound
from reservations.models import Reservation

from .factories import SYNC_NOTIFICATIONS, make_reservation, make_restaurant, make_table, make_user

DAY = date(2030, 5, 17)
Status = Reservation.Status


@SYNC_NOTIFICATIONS
class TransitionTests(TestCase):
    def setUp(self):
        self.restaurant = make_restaurant()
        self.table = make_table(self.restaurant, "A1", 2)
        self.pending = make_reservation(self.table, DAY, time(19, 0), status=Status.PENDING)

    def test_can_transition_table(self):
        self.assertTrue(lifecycle.can_transition(Status.PENDING, Status.CONFIRMED))
        self.assertTrue(lifecycle.can_transition(Status.CONFIRMED, Status.COMPLETED))
        self.assertFalse(lifecycle.can_transition(Status.PENDING, Status.COMPLETED))
        self.assertFalse(lifecycle.can_transition(Status.CANCELLED, Status.CONFIRMED))
        self.assertFalse(lifecycle.can_transition(Status.COMPLETED, Status.CANCELLED))
        # Completion is reserved for the housekeeping sweep.
        self.assertFalse(lifecycle.can_transition(Status.CONFIRMED, Status.COMPLETED, actor="staff"))

    def test_approve(self):
        reservation = lifecycle.transition(self.pending.pk, Status.CONFIRMED)
        self.assertEqual(reservation.status, Status.CONFIRMED)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.status, Status.CONFIRMED)

    def test_reject_frees_the_table(self):
        lifecycle.transition(self.pending.pk, Status.CANCELLED)
        fresh = make_reservation(self.table, DAY, time(19, 0))
        self.assertTrue(fresh.is_blocking)

    def test_terminal_states_are_final(self):
        lifecycle.transition(self.pending.pk, Status.CANCELLED)
        for target in (Status.PENDING, Status.CONFIRMED, Status.COMPLETED):
            with self.subTest(target=target), self.assertRaises(InvalidTransition):
                lifecycle.transition(self.pending.pk, target)

    def test_confirmed_cannot_go_back_to_pending(self):
        lifecycle.transition(self.pending.pk, Status.CONFIRMED)
        with self.assertRaises(InvalidTransition):
            lifecycle.transition(self.pending.pk, Status.PENDING)

    def test_unknown_status(self):
        with self.assertRaises(InvalidTransition):
            lifecycle.transition(self.pending.pk, "seated")

    def test_unknown_or_foreign_reservation(self):
        with self.assertRaises(NotFound):
            lifecycle.transition("not-a-uuid", Status.CONFIRMED)
        other = make_restaurant()
        with self.assertRaises(NotFound):
            lifecycle.transition(self.pending.pk, Status.CONFIRMED, restaurant_id=other.pk)

    def test_guest_may_cancel_before_start_only(self):
        confirmed = make_reservation(self.table, DAY, time(12, 0))
        after_start = datetime(2030, 5, 17, 12, 5, tzinfo=dt_timezone.utc)
        with self.assertRaises(InvalidTransition):
            lifecycle.transition(confirmed.pk, Status.CANCELLED, actor="guest", now=after_start)
        before = datetime(2030, 5, 17, 11, 0, tzinfo=dt_timezone.utc)
        reservation = lifecycle.transition(confirmed.pk, Status.CANCELLED, actor="guest", now=before)
        self.assertEqual(reservation.status, Status.CANCELLED)

    def test_guest_is_emailed_about_status_change(self):
        with self.captureOnCommitCallbacks(execute=True):
            lifecycle.transition(self.pending.pk, Status.CONFIRMED, by=make_user(self.restaurant))
        self.assertEqual([m.to[0] for m in mail.outbox], ["existing@guest.test"])

    def test_status_change_is_audited(self):
        with self.assertLogs("audit", level="INFO") as logs:
            lifecycle.transition(self.pending.pk, Status.CONFIRMED)
        self.assertIn("pending → confirmed", logs.output[0])

    def test_notes_are_updated_with_the_status(self):
        lifecycle.transition(self.pending.pk, Status.CONFIRMED, notes="  Birthday, bring a cake  ")
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.notes, "Birthday, bring a cake")

    def test_notes_are_kept_when_not_given(self):
        Reservation.objects.filter(pk=self.pending.pk).update(notes="Allergic to nuts")
        lifecycle.transition(self.pending.pk, Status.CONFIRMED)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.notes, "Allergic to nuts")


class CompletionSweepTests(TestCase):
    def setUp(self):
        self.restaurant = make_restaurant()
        self.table = make_table(self.restaurant, "A1", 2)

    def test_only_finished_confirmed_reservations_complete(self):
        done = make_reservation(self.table, DAY, time(10, 0), duration=90)
        running = make_reservation(self.table, DAY, time(12, 0), duration=90)
        pending = make_reservation(self.table, DAY, time(15, 0), status=Status.PENDING)
        now = datetime(2030, 5, 17, 13, 0, tzinfo=dt_timezone.utc)

        self.assertEqual(lifecycle.complete_past_reservations(now=now), 1)

        statuses = dict(Reservation.objects.values_list("pk", "status"))
        self.assertEqual(statuses[done.pk], Status.COMPLETED)
        self.assertEqual(statuses[running.pk], Status.CONFIRMED)
        self.assertEqual(statuses[pending.pk], Status.PENDING)

    def test_sweep_respects_restaurant_timezone(self):
        tokyo = make_restaurant(timezone="Asia/Tokyo")
        table = make_table(tokyo, "T1", 2)
        reservation = make_reservation(table, DAY, time(20, 0), duration=60)
        # 21:30 in Tokyo.
        now = datetime(2030, 5, 17, 12, 30, tzinfo=dt_timezone.utc)
        self.assertEqual(lifecycle.complete_past_reservations(now=now), 1)
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Status.COMPLETED)

    def test_management_command(self):
        make_reservation(self.table, date(2001, 1, 1), time(10, 0))
        out = StringIO()
        call_command("complete_past_reservations", stdout=out)
        self.assertIn("Completed 1 reservation(s)", out.getvalue())

    def test_completed_reservations_no_longer_block(self):
        make_reservation(self.table, DAY, time(10, 0))
        lifecycle.complete_past_reservations(now=datetime(2030, 5, 18, tzinfo=dt_timezone.utc))
        rebook = make_reservation(self.table, DAY, time(10, 0))
        self.assertTrue(rebook.is_blocking)

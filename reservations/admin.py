# reservations/admin.py
import csv
import logging

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.http import HttpResponse
from django.utils import timezone
from unfold.admin import ModelAdmin, StackedInline, TabularInline

from . import lifecycle
from .exceptions import ReservationError
from .models import CustomUser, Reservation, Restaurant, ScheduleConfig, Table
from .permissions import RoleRestrictedAdmin

audit_logger = logging.getLogger("audit")


# =============================================================================
# === GLOBAL UTILITIES ========================================================
# =============================================================================

@admin.action(description="Mark selected as inactive")
def mark_inactive(modeladmin, request, queryset):
    queryset.update(is_active=False)


@admin.action(description="Mark selected as active")
def mark_active(modeladmin, request, queryset):
    queryset.update(is_active=True)


# =============================================================================
# === USER ADMIN ==============================================================
# =============================================================================

@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    list_display = ("username", "email", "role", "restaurant", "is_active", "is_staff")
    list_filter = ("role", "restaurant", "is_active")
    search_fields = ("username", "email")
    readonly_fields = ("last_login", "date_joined")
    ordering = ("-date_joined",)
    fieldsets = UserAdmin.fieldsets + (
        ("Restaurant", {"fields": ("role", "restaurant", "preferred_language")}),
    )


# =============================================================================
# === RESTAURANT, SCHEDULE & TABLE ADMIN =====================================
# =============================================================================

class ScheduleConfigInline(StackedInline):
    model = ScheduleConfig
    can_delete = False
    extra = 0


class TableInline(TabularInline):
    model = Table
    extra = 1
    fields = ("number", "capacity", "zone", "is_active", "sort_order")


@admin.register(Restaurant)
class RestaurantAdmin(RoleRestrictedAdmin):
    list_display = ("name", "slug", "email", "timezone", "default_language", "reservations_enabled")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [ScheduleConfigInline, TableInline]
    restaurant_field = "pk"

    @admin.display(boolean=True, description="Bookings open")
    def reservations_enabled(self, obj):
        schedule = getattr(obj, "schedule", None)
        return bool(schedule and schedule.reservations_enabled)


@admin.register(ScheduleConfig)
class ScheduleConfigAdmin(RoleRestrictedAdmin):
    list_display = (
        "restaurant", "working_hours_start", "working_hours_end",
        "slot_minutes", "mode", "reservations_enabled", "updated_at",
    )
    list_filter = ("mode", "reservations_enabled", "slot_minutes")
    list_editable = ("reservations_enabled",)


@admin.register(Table)
class TableAdmin(RoleRestrictedAdmin):
    list_display = ("number", "restaurant", "capacity", "zone", "is_active", "sort_order")
    list_filter = ("restaurant", "is_active", "zone")
    search_fields = ("number", "zone", "restaurant__name")
    list_editable = ("is_active", "sort_order")
    actions = [mark_active, mark_inactive]


# =============================================================================
# === RESERVATION ADMIN =======================================================
# =============================================================================

@admin.register(Reservation)
class ReservationAdmin(RoleRestrictedAdmin):
    list_display = (
        "guest_name", "restaurant", "table", "date", "start_time",
        "duration", "guests_count", "status", "created_at",
    )
    list_filter = ("status", "restaurant", "date")
    search_fields = ("guest_name", "guest_email", "guest_phone", "table__number")
    date_hierarchy = "date"
    ordering = ("-date", "-start_time")
    readonly_fields = ("id", "duration", "status", "created_at", "updated_at")
    actions = ["approve_selected", "cancel_selected", "export_selected_to_csv"]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("restaurant", "table")

    # --------------------------------------------------------------------------
    # Status actions
    # --------------------------------------------------------------------------
    def _apply_transition(self, request, queryset, new_status):
        changed, failed = 0, 0
        scope = None if request.user.is_superuser else request.user.restaurant_id
        for reservation in queryset:
            try:
                lifecycle.transition(
                    reservation.pk, new_status, actor="staff", restaurant_id=scope, by=request.user
                )
                changed += 1
            except ReservationError as exc:
                failed += 1
                self.message_user(request, f"⚠️ {reservation.guest_name}: {exc.detail}", level="warning")
        if changed:
            self.message_user(request, f"✅ {changed} reservation(s) set to {new_status}.")
        return changed, failed

    @admin.action(description="✅ Approve selected reservations")
    def approve_selected(self, request, queryset):
        self._apply_transition(request, queryset, Reservation.Status.CONFIRMED)

    @admin.action(description="❌ Cancel selected reservations")
    def cancel_selected(self, request, queryset):
        self._apply_transition(request, queryset, Reservation.Status.CANCELLED)

    # --------------------------------------------------------------------------
    # CSV Export Action
    # --------------------------------------------------------------------------
    @admin.action(description="⬇️ Export selected reservations to CSV")
    def export_selected_to_csv(self, request, queryset):
        """Download the selected reservations as CSV and leave an audit trail."""
        response = HttpResponse(content_type="text/csv")
        filename = f"reservations_{timezone.now().strftime('%Y%m%d_%H%M%S')}.csv"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'

        writer = csv.writer(response)
        writer.writerow([
            "Date", "Start", "Duration", "Table", "Guests",
            "Name", "Email", "Phone", "Status", "Notes",
        ])
        for r in queryset.select_related("table"):
            writer.writerow([
                r.date.isoformat(),
                r.start_time.strftime("%H:%M"),
                r.duration,
                r.table.number,
                r.guests_count,
                r.guest_name,
                r.guest_email,
                r.guest_phone,
                r.status,
                r.notes.replace("\n", " "),
            ])

        audit_logger.info(
            f"User {request.user.username} exported {queryset.count()} reservations "
            f"on {timezone.now():%Y-%m-%d %H:%M} from IP={request.META.get('REMOTE_ADDR')}"
        )
        return response

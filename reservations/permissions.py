"""
permissions.py

Role-based access for the reservation dashboard API and admin.
"""

from rest_framework import permissions
from unfold.admin import ModelAdmin

from .models import CustomUser

MANAGING_ROLES = [
    CustomUser.Roles.OWNER,
    CustomUser.Roles.MANAGER,
    CustomUser.Roles.HOST,
]


def is_reservation_staff(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or getattr(user, "role", None) in MANAGING_ROLES


class IsReservationStaff(permissions.BasePermission):
    """Owners, managers and hosts attached to a restaurant (or superusers)."""

    message = "Only restaurant staff can manage reservations."

    def has_permission(self, request, view):
        user = request.user
        if not is_reservation_staff(user):
            return False
        return user.is_superuser or user.restaurant_id is not None

    def has_object_permission(self, request, view, obj):
        return request.user.works_at(obj.restaurant_id)


class RoleRestrictedAdmin(ModelAdmin):
    """
    A base admin class that enforces role-based view, add, change, and delete
    permissions and scopes rows to the user's restaurant.
    """

    restaurant_field = "restaurant"

    def has_module_permission(self, request):
        return is_reservation_staff(request.user)

    def has_view_permission(self, request, obj=None):
        return is_reservation_staff(request.user)

    def has_add_permission(self, request):
        user = request.user
        return user.is_superuser or user.role in [CustomUser.Roles.OWNER, CustomUser.Roles.MANAGER]

    def has_change_permission(self, request, obj=None):
        return self.has_add_permission(request)

    def has_delete_permission(self, request, obj=None):
        return self.has_add_permission(request)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        user = request.user
        if user.is_superuser:
            return qs
        if user.restaurant_id:
            return qs.filter(**{self.restaurant_field: user.restaurant_id})
        return qs.none()

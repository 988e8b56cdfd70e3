# reservations/serializers.py

from rest_framework import serializers

from .models import Reservation


# ==============================================================================
# Availability
# ==============================================================================

class AvailabilityQuerySerializer(serializers.Serializer):
    """Query string of the availability endpoint."""

    date = serializers.DateField(input_formats=["%Y-%m-%d"])
    time = serializers.TimeField(input_formats=["%H:%M"], required=False)
    guests = serializers.IntegerField(required=False, default=2)


class SlotSerializer(serializers.Serializer):
    time = serializers.TimeField(source="start_time", format="%H:%M")
    available = serializers.BooleanField(source="is_available")
    availableTables = serializers.IntegerField(source="available_tables")


class TableAvailabilitySerializer(serializers.Serializer):
    id = serializers.IntegerField(source="table.pk")
    number = serializers.CharField(source="table.number")
    capacity = serializers.IntegerField(source="table.capacity")
    zone = serializers.SerializerMethodField()
    available = serializers.BooleanField(source="is_available")

    def get_zone(self, obj):
        return obj.table.zone_for(self.context.get("language")) or None


# ==============================================================================
# Reservation
# ==============================================================================

class ReservationSerializer(serializers.ModelSerializer):
    """Reservation as returned to guests and dashboards."""

    restaurantId = serializers.IntegerField(source="restaurant_id", read_only=True)
    tableId = serializers.IntegerField(source="table_id", read_only=True)
    tableNumber = serializers.CharField(source="table.number", read_only=True)
    startTime = serializers.TimeField(source="start_time", format="%H:%M", read_only=True)
    partySize = serializers.IntegerField(source="guests_count", read_only=True)
    guestName = serializers.CharField(source="guest_name", read_only=True)
    guestEmail = serializers.EmailField(source="guest_email", read_only=True)
    guestPhone = serializers.CharField(source="guest_phone", read_only=True)
    statusDisplay = serializers.CharField(source="get_status_display", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Reservation
        fields = [
            "id",
            "restaurantId",
            "tableId",
            "tableNumber",
            "date",
            "startTime",
            "duration",
            "partySize",
            "guestName",
            "guestEmail",
            "guestPhone",
            "notes",
            "language",
            "status",
            "statusDisplay",
            "createdAt",
        ]
        read_only_fields = fields


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Reservation.Status.choices)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)


# ==============================================================================
# Booking
# ==============================================================================

class BookingRequestSerializer(serializers.Serializer):
    """Body of the public booking endpoint."""

    restaurantId = serializers.IntegerField()
    tableId = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField(input_formats=["%Y-%m-%d"])
    startTime = serializers.TimeField(input_formats=["%H:%M"])
    partySize = serializers.IntegerField()
    duration = serializers.IntegerField(required=False, allow_null=True)
    guestName = serializers.CharField(max_length=120)
    guestEmail = serializers.EmailField()
    guestPhone = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    language = serializers.CharField(required=False, allow_blank=True, max_length=10)

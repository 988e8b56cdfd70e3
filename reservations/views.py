from rest_framework import permissions, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from . import lifecycle, selectors
from .availability import available_tables, generate_slots
from .booking import GuestDetails, book
from .conflicts import parse_date
from .exceptions import InvalidInput, ReservationsDisabled
from .models import Reservation
from .permissions import IsReservationStaff
from .serializers import (
    AvailabilityQuerySerializer,
    BookingRequestSerializer,
    ReservationSerializer,
    SlotSerializer,
    StatusChangeSerializer,
    TableAvailabilitySerializer,
)
from .throttling import BookingRateThrottle


# ==============================================================================
# PUBLIC: AVAILABILITY
# ==============================================================================

class AvailabilityView(APIView):
    """
    GET /restaurants/<id>/availability/?date=YYYY-MM-DD&guests=N[&time=HH:MM]

    Without ``time``: every candidate slot of the day with an availability
    flag. With ``time``: every suitable table with an availability flag.
    """

    permission_classes = [permissions.AllowAny]

    def get(self, request, restaurant_id):
        config = selectors.get_config(restaurant_id)
        if not config.reservations_enabled:
            raise ReservationsDisabled()

        query = AvailabilityQuerySerializer(data=request.query_params)
        if not query.is_valid():
            raise InvalidInput(query.errors)
        params = query.validated_data
        language = request.query_params.get("lang") or getattr(request, "LANGUAGE_CODE", None)

        if params.get("time"):
            tables = available_tables(restaurant_id, params["date"], params["time"], params["guests"])
            return Response({
                "date": params["date"],
                "time": params["time"].strftime("%H:%M"),
                "guests": params["guests"],
                "slotDuration": config.slot_minutes,
                "tables": TableAvailabilitySerializer(
                    tables, many=True, context={"language": language}
                ).data,
            })

        slots = generate_slots(restaurant_id, params["date"], params["guests"])
        payload = {
            "date": params["date"],
            "guests": params["guests"],
            "slotDuration": config.slot_minutes,
            "timeSlots": SlotSerializer(slots, many=True).data,
        }
        if not slots:
            payload["message"] = "No tables available for the requested number of guests."
        return Response(payload)


# ==============================================================================
# PUBLIC: BOOKING
# ==============================================================================

class BookingView(APIView):
    """POST /bookings/: create a reservation (rate limited per client)."""

    permission_classes = [permissions.AllowAny]
    throttle_classes = [BookingRateThrottle]

    def post(self, request):
        data = request.data
        if not hasattr(data, "get"):
            raise InvalidInput("Request body must be a JSON object.")
        if not data.get("restaurantId"):
            raise InvalidInput({"restaurantId": "This field is required."})

        # A disabled restaurant answers before the body is validated.
        config = selectors.get_config(data.get("restaurantId"))
        if not config.reservations_enabled:
            raise ReservationsDisabled()

        serializer = BookingRequestSerializer(data=data)
        if not serializer.is_valid():
            raise InvalidInput(serializer.errors)
        params = serializer.validated_data

        guest = GuestDetails(
            name=params["guestName"],
            email=params["guestEmail"],
            phone=params["guestPhone"],
            notes=params["notes"],
            language=params.get("language") or getattr(request, "LANGUAGE_CODE", "en"),
        )
        reservation = book(
            config.restaurant.pk,
            table_id=params.get("tableId"),
            date=params["date"],
            start_time=params["startTime"],
            duration=params.get("duration"),
            party_size=params["partySize"],
            guest=guest,
        )
        return Response(ReservationSerializer(reservation).data, status=status.HTTP_201_CREATED)


# ==============================================================================
# STAFF: RESERVATION LIST & STATUS CHANGES
# ==============================================================================

class ReservationViewSet(viewsets.ReadOnlyModelViewSet):
    """Reservations of the signed-in staff member's restaurant, newest first."""

    serializer_class = ReservationSerializer
    permission_classes = [IsReservationStaff]

    def get_queryset(self):
        user = self.request.user
        qs = Reservation.objects.select_related("table").order_by("-date", "-start_time")
        if not user.is_superuser:
            qs = qs.filter(restaurant_id=user.restaurant_id)

        on_date = self.request.query_params.get("date")
        if on_date:
            qs = qs.filter(date=parse_date(on_date))
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs


class ReservationStatusView(APIView):
    """PATCH /reservations/<uuid>/status/ {"status": "...", "notes": "..."}: staff approve, reject or cancel."""

    permission_classes = [IsReservationStaff]

    def patch(self, request, pk):
        serializer = StatusChangeSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidInput(serializer.errors)

        user = request.user
        reservation = lifecycle.transition(
            pk,
            serializer.validated_data["status"],
            actor="staff",
            restaurant_id=None if user.is_superuser else user.restaurant_id,
            by=user,
            notes=serializer.validated_data.get("notes"),
        )
        return Response(ReservationSerializer(reservation).data)

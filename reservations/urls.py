from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# ==============================================================================
# DRF ROUTER
# ==============================================================================
router = DefaultRouter()
router.register(r'reservations', views.ReservationViewSet, basename='reservation')

# ==============================================================================
# URL PATTERNS
# ==============================================================================
app_name = 'reservations'

urlpatterns = [
    # --------------------------------------------------------------------------
    # PUBLIC (guest-facing)
    # --------------------------------------------------------------------------
    path('restaurants/<int:restaurant_id>/availability/', views.AvailabilityView.as_view(), name='availability'),
    path('bookings/', views.BookingView.as_view(), name='booking-create'),

    # --------------------------------------------------------------------------
    # STAFF
    # --------------------------------------------------------------------------
    path('reservations/<uuid:pk>/status/', views.ReservationStatusView.as_view(), name='reservation-status'),
    path('', include(router.urls)),
]

"""
Scheduling API URLs (mounted under /api/).
"""
from django.urls import path
from . import views

app_name = 'bookings'

urlpatterns = [
    # ── Availability ───────────────────────────────────────────────────────────
    path('availability/',                               views.availability,           name='availability'),
    path('availability/month/',                         views.month_availability,     name='month_availability'),

    # ── Reservations ───────────────────────────────────────────────────────────
    path('reservations/',                               views.create_reservation,     name='reserve'),
    path('reservations/<uuid:reservation_id>/release/', views.release_reservation,    name='release'),
    path('reservations/<uuid:reservation_id>/reschedule/', views.reschedule_reservation, name='reschedule'),

    # ── Legacy migration ───────────────────────────────────────────────────────
    path('migrate/',                                    views.migrate,                name='migrate'),
]

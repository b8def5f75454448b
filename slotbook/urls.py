"""
URL configuration for the SlotBook scheduling service.
"""
from django.contrib import admin
from django.conf import settings
from django.urls import path, include

urlpatterns = [
    path(settings.ADMIN_URL, admin.site.urls),
    path('api/', include('apps.bookings.urls', namespace='bookings')),
    path('api/templates/', include('apps.slot_templates.urls', namespace='slot_templates')),
    path('api/services/', include('apps.services.urls', namespace='services')),
]

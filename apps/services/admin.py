from django.contrib import admin
from .models import Service


def get_staff(obj):
    return ', '.join(s.name for s in obj.staff.all()) or '-'
get_staff.short_description = 'Staff'


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['name', 'business', 'duration', 'slots_needed', 'max_capacity', get_staff, 'is_active']
    list_filter = ['business', 'is_active', 'any_time_available']
    search_fields = ['name', 'category', 'business__name']
    list_editable = ['is_active']
    readonly_fields = ['id', 'slots_needed', 'slot_migration', 'created_at', 'updated_at', 'deleted_at']
    fieldsets = (
        ('Service Info', {'fields': ('id', 'business', 'name', 'description', 'category', 'template')}),
        ('Slots', {'fields': ('duration', 'slots_needed', 'max_capacity', 'slots')}),
        ('Hours', {'fields': ('available_days', 'start_time', 'end_time')}),
        ('Booking Window', {'fields': ('min_advance_hours', 'max_advance_days', 'any_time_available')}),
        ('Status', {'fields': ('is_active',)}),
        ('Audit', {'fields': ('slot_migration', 'created_at', 'updated_at', 'deleted_at'), 'classes': ('collapse',)}),
    )

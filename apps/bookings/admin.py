from django.contrib import admin
from .models import Appointment, AppointmentStatusLog, SlotLedger


class AppointmentStatusLogInline(admin.TabularInline):
    model = AppointmentStatusLog
    extra = 0
    readonly_fields = ['from_status', 'to_status', 'changed_by', 'reason', 'changed_at']
    can_delete = False


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        'short_id', 'client_name', 'business', 'service', 'staff',
        'booking_date', 'start_time', 'end_time', 'slots_used', 'status',
    ]
    list_filter = ['status', 'business', 'booking_date']
    search_fields = ['client_name', 'staff__name', 'service__name']
    readonly_fields = [
        'id', 'start_slot', 'end_slot', 'slots_used', 'slot_details',
        'created_at', 'updated_at', 'deleted_at',
    ]
    date_hierarchy = 'booking_date'
    inlines = [AppointmentStatusLogInline]
    fieldsets = (
        ('Appointment', {'fields': ('id', 'business', 'service', 'staff', 'client_name')}),
        ('Schedule', {'fields': ('booking_date', 'scheduled_for', 'duration')}),
        ('Slots', {'fields': ('start_slot', 'end_slot', 'slots_used', 'slot_details')}),
        ('Status', {'fields': ('status',)}),
        ('Audit', {'fields': ('created_at', 'updated_at', 'deleted_at'), 'classes': ('collapse',)}),
    )

    def short_id(self, obj):
        return str(obj.id)[:8]
    short_id.short_description = 'ID'


@admin.register(SlotLedger)
class SlotLedgerAdmin(admin.ModelAdmin):
    list_display = ['service', 'staff', 'booking_date', 'version', 'updated_at']
    list_filter = ['booking_date']
    readonly_fields = ['id', 'service', 'staff', 'booking_date', 'version', 'created_at', 'updated_at']
    search_fields = ['service__name', 'staff__name']


@admin.register(AppointmentStatusLog)
class AppointmentStatusLogAdmin(admin.ModelAdmin):
    list_display = ['appointment', 'from_status', 'to_status', 'changed_by', 'changed_at']
    readonly_fields = ['id', 'appointment', 'from_status', 'to_status', 'changed_by', 'reason', 'changed_at']
    search_fields = ['appointment__client_name']

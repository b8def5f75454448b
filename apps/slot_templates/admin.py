from django.contrib import admin
from .models import SlotTemplate


@admin.register(SlotTemplate)
class SlotTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'business', 'category', 'slots_needed', 'duration', 'is_default', 'is_active']
    list_filter = ['is_default', 'is_active', 'category']
    search_fields = ['name', 'category', 'business__name']
    list_editable = ['is_active']
    readonly_fields = ['id', 'duration', 'created_at', 'updated_at', 'deleted_at']
    fieldsets = (
        ('Template', {'fields': ('id', 'business', 'name', 'description', 'category')}),
        ('Slots', {'fields': ('slots_needed', 'duration')}),
        ('Display', {'fields': ('metadata',)}),
        ('Status', {'fields': ('is_default', 'is_active')}),
        ('Audit', {'fields': ('created_at', 'updated_at', 'deleted_at'), 'classes': ('collapse',)}),
    )

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_default:
            return False
        return super().has_delete_permission(request, obj)

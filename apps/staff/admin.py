from django.contrib import admin
from .models import Staff


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ['name', 'business', 'email', 'is_active', 'deleted_at']
    list_filter = ['business', 'is_active']
    search_fields = ['name', 'email', 'business__name']
    list_editable = ['is_active']
    filter_horizontal = ['services']
    readonly_fields = ['id', 'created_at', 'updated_at', 'deleted_at']
    fieldsets = (
        ('Staff Info', {'fields': ('id', 'business', 'name', 'email')}),
        ('Services', {'fields': ('services',)}),
        ('Status', {'fields': ('is_active',)}),
        ('Audit', {'fields': ('created_at', 'updated_at', 'deleted_at'), 'classes': ('collapse',)}),
    )

from django.contrib import admin
from .models import Business


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'requires_staff_assignment', 'is_active', 'deleted_at']
    list_filter = ['is_active', 'requires_staff_assignment']
    search_fields = ['name', 'slug']
    list_editable = ['is_active']
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ['id', 'created_at', 'updated_at', 'deleted_at']
    fieldsets = (
        ('Business Info', {'fields': ('id', 'name', 'slug')}),
        ('Scheduling', {'fields': ('requires_staff_assignment',)}),
        ('Status', {'fields': ('is_active',)}),
        ('Audit', {'fields': ('created_at', 'updated_at', 'deleted_at'), 'classes': ('collapse',)}),
    )

from django.contrib import admin
from .models import Driver, DriverNote


class DriverNoteInline(admin.TabularInline):
    model = DriverNote
    extra = 0


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone_number', 'vehicle_number', 'vehicle_type', 'vehicle_weight', 'is_active', 'last_dispatched_at']
    list_filter = ['vehicle_type', 'vehicle_weight', 'is_active', 'company_type']
    search_fields = ['name', 'phone_number', 'vehicle_number']
    ordering = ['name']
    inlines = [DriverNoteInline]

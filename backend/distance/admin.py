from django.contrib import admin
from .models import DistanceCache, ApiUsageLog


@admin.register(DistanceCache)
class DistanceCacheAdmin(admin.ModelAdmin):
    list_display = ['pickup_address', 'delivery_address', 'priority', 'distance_km', 'duration_min', 'is_valid', 'hit_count', 'created_at']
    list_filter = ['priority', 'is_valid']
    raw_id_fields = ['pickup_address', 'delivery_address']


@admin.register(ApiUsageLog)
class ApiUsageLogAdmin(admin.ModelAdmin):
    list_display = ['api_type', 'response_status', 'success', 'response_time_ms', 'estimated_cost', 'user', 'created_at']
    list_filter = ['api_type', 'success', 'response_status']
    readonly_fields = [field.name for field in ApiUsageLog._meta.fields]

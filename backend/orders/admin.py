from django.contrib import admin
from .models import Order, OrderDispatch


class OrderDispatchInline(admin.StackedInline):
    model = OrderDispatch
    extra = 0
    fk_name = 'order'


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'company', 'cargo_name', 'flow_status', 'pickup_date', 'delivery_date', 'is_canceled', 'created_at']
    list_filter = ['flow_status', 'is_canceled', 'requested_vehicle_type']
    search_fields = ['cargo_name', 'pickup_name', 'delivery_name', 'company__name']
    ordering = ['-created_at']
    inlines = [OrderDispatchInline]


@admin.register(OrderDispatch)
class OrderDispatchAdmin(admin.ModelAdmin):
    list_display = ['id', 'order', 'broker_company', 'driver', 'vehicle_number', 'broker_flow_status', 'is_closed']
    list_filter = ['broker_flow_status', 'is_closed']
    search_fields = ['vehicle_number', 'driver__name']

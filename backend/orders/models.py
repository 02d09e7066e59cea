from django.db import models
from django.conf import settings

from backend.drivers.models import VEHICLE_TYPE_CHOICES, VEHICLE_WEIGHT_CHOICES

FLOW_STATUS_CHOICES = [
    ('requested', 'Requested'),
    ('awaiting_dispatch', 'Awaiting Dispatch'),
    ('dispatched', 'Dispatched'),
    ('awaiting_pickup', 'Awaiting Pickup'),
    ('picked_up', 'Picked Up'),
    ('in_transit', 'In Transit'),
    ('delivered', 'Delivered'),
    ('completed', 'Completed'),
]


class Order(models.Model):
    """Shipment requested by a shipper company"""
    PRICE_TYPE_CHOICES = [
        ('fixed', 'Fixed'),
        ('negotiable', 'Negotiable'),
    ]

    TAX_TYPE_CHOICES = [
        ('taxable', 'Taxable'),
        ('tax_free', 'Tax Free'),
    ]

    company = models.ForeignKey('companies.Company', on_delete=models.PROTECT, related_name='orders')
    contact_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='contact_orders')
    contact_snapshot = models.JSONField(default=dict, blank=True)
    flow_status = models.CharField(max_length=30, choices=FLOW_STATUS_CHOICES, default='requested')
    cargo_name = models.CharField(max_length=255)
    requested_vehicle_type = models.CharField(max_length=20, choices=VEHICLE_TYPE_CHOICES)
    requested_vehicle_weight = models.CharField(max_length=10, choices=VEHICLE_WEIGHT_CHOICES)

    pickup_address = models.ForeignKey('addresses.Address', on_delete=models.SET_NULL, null=True, blank=True, related_name='pickup_orders')
    pickup_snapshot = models.JSONField(default=dict, blank=True)
    pickup_name = models.CharField(max_length=255, blank=True)
    pickup_contact_name = models.CharField(max_length=100, blank=True)
    pickup_contact_phone = models.CharField(max_length=20, blank=True)
    pickup_date = models.DateField()
    pickup_time = models.TimeField(null=True, blank=True)

    delivery_address = models.ForeignKey('addresses.Address', on_delete=models.SET_NULL, null=True, blank=True, related_name='delivery_orders')
    delivery_snapshot = models.JSONField(default=dict, blank=True)
    delivery_name = models.CharField(max_length=255, blank=True)
    delivery_contact_name = models.CharField(max_length=100, blank=True)
    delivery_contact_phone = models.CharField(max_length=20, blank=True)
    delivery_date = models.DateField()
    delivery_time = models.TimeField(null=True, blank=True)

    estimated_price_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    price_type = models.CharField(max_length=20, choices=PRICE_TYPE_CHOICES, default='fixed')
    tax_type = models.CharField(max_length=20, choices=TAX_TYPE_CHOICES, default='taxable')
    estimated_distance_km = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    estimated_duration_min = models.PositiveIntegerField(null=True, blank=True)
    is_canceled = models.BooleanField(default=False)
    memo = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders_created')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Order-{self.pk} {self.cargo_name}"

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'flow_status'], name='orders_company_status_idx'),
            models.Index(fields=['pickup_date'], name='orders_pickup_date_idx'),
            models.Index(fields=['delivery_date'], name='orders_delivery_date_idx'),
        ]


class OrderDispatch(models.Model):
    """Assignment of a broker, driver and vehicle to an order"""
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='dispatch')
    broker_company = models.ForeignKey('companies.Company', on_delete=models.PROTECT, related_name='broker_dispatches')
    broker_manager = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='managed_dispatches')
    driver = models.ForeignKey('drivers.Driver', on_delete=models.PROTECT, related_name='dispatches')
    driver_snapshot = models.JSONField(default=dict, blank=True)
    vehicle_number = models.CharField(max_length=20)
    vehicle_type = models.CharField(max_length=20, choices=VEHICLE_TYPE_CHOICES)
    vehicle_weight = models.CharField(max_length=10, choices=VEHICLE_WEIGHT_CHOICES)
    vehicle_connection = models.CharField(max_length=100, blank=True)
    agreed_freight_cost = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    broker_memo = models.TextField(blank=True)
    broker_flow_status = models.CharField(max_length=30, choices=FLOW_STATUS_CHOICES, default='dispatched')
    is_closed = models.BooleanField(default=False)
    closed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='dispatches_created')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='dispatches_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Dispatch-{self.pk} (Order-{self.order_id})"

    class Meta:
        db_table = 'order_dispatches'
        ordering = ['-created_at']

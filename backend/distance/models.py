from decimal import Decimal

from django.db import models
from django.conf import settings

ROUTE_PRIORITY_CHOICES = [
    ('RECOMMEND', 'Recommended'),
    ('TIME', 'Fastest'),
    ('DISTANCE', 'Shortest'),
]


class DistanceCache(models.Model):
    """Route distance between two addresses as returned by the directions API"""
    pickup_address = models.ForeignKey('addresses.Address', on_delete=models.CASCADE, related_name='distance_cache_pickups')
    delivery_address = models.ForeignKey('addresses.Address', on_delete=models.CASCADE, related_name='distance_cache_deliveries')
    pickup_coordinates = models.JSONField(default=dict)
    delivery_coordinates = models.JSONField(default=dict)
    priority = models.CharField(max_length=20, choices=ROUTE_PRIORITY_CHOICES, default='RECOMMEND')
    distance_km = models.DecimalField(max_digits=10, decimal_places=2)
    duration_min = models.PositiveIntegerField()
    route_summary = models.JSONField(default=dict, blank=True)
    is_valid = models.BooleanField(default=True)
    hit_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.pickup_address_id} -> {self.delivery_address_id}: {self.distance_km}km"

    class Meta:
        db_table = 'distance_cache'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['pickup_address', 'delivery_address', 'priority'], name='distance_cache_pair_idx'),
            models.Index(fields=['is_valid', 'created_at'], name='distance_cache_valid_idx'),
        ]


class ApiUsageLog(models.Model):
    """One call (or refused call) to an external map API"""
    API_TYPE_CHOICES = [
        ('directions', 'Directions'),
        ('search_address', 'Address Search'),
    ]

    api_type = models.CharField(max_length=30, choices=API_TYPE_CHOICES, default='directions')
    endpoint = models.CharField(max_length=200, blank=True)
    request_params = models.JSONField(default=dict, blank=True)
    response_status = models.PositiveIntegerField()
    response_time_ms = models.PositiveIntegerField(default=0)
    success = models.BooleanField(default=False)
    error_message = models.CharField(max_length=500, blank=True)
    result_count = models.PositiveIntegerField(null=True, blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='api_usage_logs')
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=500, blank=True)
    estimated_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.api_type} {self.response_status} at {self.created_at}"

    class Meta:
        db_table = 'api_usage_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['api_type', 'created_at'], name='api_usage_type_idx'),
            models.Index(fields=['created_at'], name='api_usage_created_idx'),
        ]

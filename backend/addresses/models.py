from django.db import models
from django.conf import settings


class ActiveAddressManager(models.Manager):
    """Hides soft-deleted addresses"""
    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class Address(models.Model):
    """Address book entry for pickup and delivery points"""
    TYPE_CHOICES = [
        ('pickup', 'Pickup'),
        ('delivery', 'Delivery'),
        ('both', 'Both'),
    ]

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    road_address = models.CharField(max_length=255)
    jibun_address = models.CharField(max_length=255)
    detail_address = models.CharField(max_length=255, blank=True)
    postal_code = models.CharField(max_length=10, blank=True)
    # lat, lng, buildingName, floor, tags, source, originalInput
    metadata = models.JSONField(default=dict, blank=True)
    contact_name = models.CharField(max_length=100, blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)
    memo = models.TextField(blank=True)
    is_frequent = models.BooleanField(default=False)
    company = models.ForeignKey('companies.Company', on_delete=models.SET_NULL, null=True, blank=True, related_name='addresses')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='addresses_created')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='addresses_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = ActiveAddressManager()
    all_objects = models.Manager()

    def __str__(self):
        return f"{self.name} ({self.road_address})"

    class Meta:
        db_table = 'addresses'
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['type'], name='addresses_type_idx'),
            models.Index(fields=['is_frequent'], name='addresses_frequent_idx'),
            models.Index(fields=['-updated_at'], name='addresses_updated_idx'),
        ]

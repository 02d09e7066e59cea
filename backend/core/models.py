from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Back-office user, optionally attached to a broker or shipper company"""
    ACCESS_LEVEL_CHOICES = [
        ('platform_admin', 'Platform Admin'),
        ('broker_admin', 'Broker Admin'),
        ('shipper_admin', 'Shipper Admin'),
        ('broker_member', 'Broker Member'),
        ('shipper_member', 'Shipper Member'),
        ('viewer', 'Viewer'),
        ('guest', 'Guest'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('locked', 'Locked'),
    ]

    phone = models.CharField(max_length=20, blank=True, null=True)
    access_level = models.CharField(max_length=20, choices=ACCESS_LEVEL_CHOICES, default='guest')
    company = models.ForeignKey('companies.Company', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    department = models.CharField(max_length=100, blank=True)
    position = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    @property
    def display_name(self):
        full_name = self.get_full_name()
        return full_name or self.username


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class ChangeLog(models.Model):
    """Append-only audit trail for tracked entities"""
    ENTITY_CHOICES = [
        ('address', 'Address'),
        ('company', 'Company'),
        ('company_warning', 'Company Warning'),
        ('driver', 'Driver'),
        ('order', 'Order'),
        ('dispatch', 'Dispatch'),
        ('user', 'User'),
    ]

    CHANGE_TYPE_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('status_change', 'Status Change'),
        ('cancel', 'Cancel'),
        ('update_price', 'Price Change'),
        ('update_price_sales', 'Sales Price Change'),
        ('update_price_purchase', 'Purchase Price Change'),
    ]

    entity_type = models.CharField(max_length=30, choices=ENTITY_CHOICES)
    entity_id = models.CharField(max_length=100)
    changed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='change_logs')
    changed_by_name = models.CharField(max_length=150)
    changed_by_email = models.CharField(max_length=254, blank=True)
    changed_by_access_level = models.CharField(max_length=30, blank=True)
    change_type = models.CharField(max_length=30, choices=CHANGE_TYPE_CHOICES)
    old_data = models.JSONField(null=True, blank=True)
    new_data = models.JSONField(null=True, blank=True)
    diff = models.JSONField(default=dict, blank=True)
    reason = models.TextField(blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.entity_type}:{self.entity_id} {self.change_type}"

    class Meta:
        db_table = 'change_logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='change_logs_entity_idx'),
            models.Index(fields=['-created_at'], name='change_logs_created_idx'),
            models.Index(fields=['change_type'], name='change_logs_type_idx'),
        ]

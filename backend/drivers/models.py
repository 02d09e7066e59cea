from django.db import models
from django.conf import settings

VEHICLE_TYPE_CHOICES = [
    ('cargo', 'Cargo'),
    ('wing_body', 'Wing Body'),
    ('box', 'Box'),
    ('refrigerated', 'Refrigerated'),
    ('frozen', 'Frozen'),
    ('lift', 'Lift'),
    ('trailer', 'Trailer'),
    ('damas', 'Damas'),
    ('labo', 'Labo'),
]

VEHICLE_WEIGHT_CHOICES = [
    ('1t', '1t'),
    ('1.4t', '1.4t'),
    ('2.5t', '2.5t'),
    ('3.5t', '3.5t'),
    ('5t', '5t'),
    ('8t', '8t'),
    ('11t', '11t'),
    ('14t', '14t'),
    ('15t', '15t'),
    ('18t', '18t'),
    ('25t', '25t'),
]


class Driver(models.Model):
    """Truck driver available for dispatch"""
    COMPANY_TYPE_CHOICES = [
        ('individual', 'Individual'),
        ('affiliated', 'Affiliated'),
    ]

    name = models.CharField(max_length=100)
    phone_number = models.CharField(max_length=20)
    vehicle_number = models.CharField(max_length=20, unique=True)
    vehicle_type = models.CharField(max_length=20, choices=VEHICLE_TYPE_CHOICES)
    vehicle_weight = models.CharField(max_length=10, choices=VEHICLE_WEIGHT_CHOICES)
    company = models.ForeignKey('companies.Company', on_delete=models.SET_NULL, null=True, blank=True, related_name='drivers')
    company_type = models.CharField(max_length=20, choices=COMPANY_TYPE_CHOICES, default='individual')
    business_number = models.CharField(max_length=20, blank=True)
    manufacture_year = models.PositiveIntegerField(null=True, blank=True)
    address_snapshot = models.JSONField(default=dict, blank=True)
    bank_code = models.CharField(max_length=10, blank=True)
    bank_account_number = models.CharField(max_length=50, blank=True)
    bank_account_holder = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(default=True)
    inactive_reason = models.CharField(max_length=255, blank=True)
    last_dispatched_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='drivers_created')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='drivers_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.vehicle_number})"

    class Meta:
        db_table = 'drivers'
        ordering = ['name']
        indexes = [
            models.Index(fields=['phone_number'], name='drivers_phone_idx'),
            models.Index(fields=['vehicle_type', 'vehicle_weight'], name='drivers_vehicle_idx'),
        ]


class DriverNote(models.Model):
    """Dated free-text note about a driver"""
    driver = models.ForeignKey(Driver, on_delete=models.CASCADE, related_name='notes')
    content = models.CharField(max_length=500)
    date = models.DateField()
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='driver_notes')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.driver.name} {self.date}"

    class Meta:
        db_table = 'driver_notes'
        ordering = ['-date', '-created_at']

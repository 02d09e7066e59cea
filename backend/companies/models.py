from django.db import models
from django.conf import settings


class Company(models.Model):
    """Broker, shipper or carrier company"""
    TYPE_CHOICES = [
        ('broker', 'Broker'),
        ('shipper', 'Shipper'),
        ('carrier', 'Carrier'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=255)
    business_number = models.CharField(max_length=20, unique=True)
    ceo_name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    address_postal_code = models.CharField(max_length=10, blank=True)
    address_road = models.CharField(max_length=255, blank=True)
    address_detail = models.CharField(max_length=255, blank=True)
    contact_tel = models.CharField(max_length=20, blank=True)
    contact_mobile = models.CharField(max_length=20, blank=True)
    contact_email = models.EmailField(blank=True)
    bank_code = models.CharField(max_length=10, blank=True)
    bank_account_number = models.CharField(max_length=50, blank=True)
    bank_account_holder = models.CharField(max_length=100, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='companies_created')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='companies_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'companies'
        ordering = ['name']
        verbose_name_plural = 'companies'
        indexes = [
            models.Index(fields=['type', 'status'], name='companies_type_status_idx'),
            models.Index(fields=['name'], name='companies_name_idx'),
        ]


class CompanyWarning(models.Model):
    """Operational caution shown to dispatchers when handling a company"""
    CATEGORY_CHOICES = [
        ('payment', 'Payment'),
        ('cargo', 'Cargo'),
        ('contact', 'Contact'),
        ('etc', 'Etc'),
    ]

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='warnings')
    text = models.TextField()
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='etc')
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.company.name}: {self.text[:30]}"

    class Meta:
        db_table = 'company_warnings'
        ordering = ['sort_order', 'created_at']

from decimal import Decimal, ROUND_HALF_UP

from django.db import models
from django.conf import settings

SETTLEMENT_STATUS_CHOICES = [
    ('draft', 'Draft'),
    ('issued', 'Issued'),
    ('paid', 'Paid'),
    ('canceled', 'Canceled'),
    ('void', 'Void'),
]

BUNDLE_STATUS_CHOICES = [
    ('draft', 'Draft'),
    ('issued', 'Issued'),
    ('paid', 'Paid'),
    ('canceled', 'Canceled'),
]

ADJUSTMENT_TYPE_CHOICES = [
    ('discount', 'Discount'),
    ('surcharge', 'Surcharge'),
]

PAYMENT_METHOD_CHOICES = [
    ('bank_transfer', 'Bank Transfer'),
    ('cash', 'Cash'),
    ('card', 'Card'),
    ('etc', 'Etc'),
]

PERIOD_TYPE_CHOICES = [
    ('departure', 'Departure Date'),
    ('arrival', 'Arrival Date'),
    ('created', 'Created Date'),
]

CENT = Decimal('0.01')


def quantize(value):
    """Round a money amount half-up to two decimal places"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class ChargeGroup(models.Model):
    """A set of charges raised for an order at one stage for one reason"""
    STAGE_CHOICES = [
        ('estimate', 'Estimate'),
        ('progress', 'In Progress'),
        ('completed', 'Completed'),
    ]

    REASON_CHOICES = [
        ('base_freight', 'Base Freight'),
        ('extra_wait', 'Extra Waiting'),
        ('night_fee', 'Night Fee'),
        ('toll', 'Toll'),
        ('extra_stop', 'Extra Stop'),
        ('discount', 'Discount'),
        ('penalty', 'Penalty'),
        ('etc', 'Etc'),
    ]

    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, related_name='charge_groups')
    dispatch = models.ForeignKey('orders.OrderDispatch', on_delete=models.SET_NULL, null=True, blank=True, related_name='charge_groups')
    stage = models.CharField(max_length=20, choices=STAGE_CHOICES, default='estimate')
    reason = models.CharField(max_length=20, choices=REASON_CHOICES, default='base_freight')
    description = models.CharField(max_length=255, blank=True)
    is_locked = models.BooleanField(default=False)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='charge_groups_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Order-{self.order_id} {self.reason} ({self.stage})"

    class Meta:
        db_table = 'charge_groups'
        ordering = ['created_at']


class ChargeLine(models.Model):
    """Sales or purchase amount inside a charge group"""
    SIDE_CHOICES = [
        ('sales', 'Sales'),
        ('purchase', 'Purchase'),
    ]

    group = models.ForeignKey(ChargeGroup, on_delete=models.CASCADE, related_name='lines')
    side = models.CharField(max_length=10, choices=SIDE_CHOICES)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('10.00'))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    memo = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='charge_lines_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.tax_amount = quantize(Decimal(self.amount) * Decimal(self.tax_rate) / Decimal('100'))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.side} {self.amount}"

    class Meta:
        db_table = 'charge_lines'
        ordering = ['created_at']


class SettlementRecord(models.Model):
    """Fields shared by per-order sales and purchase settlement rows"""
    order = models.ForeignKey('orders.Order', on_delete=models.PROTECT, related_name='%(class)s_set')
    invoice_number = models.CharField(max_length=50, unique=True)
    status = models.CharField(max_length=20, choices=SETTLEMENT_STATUS_CHOICES, default='draft')
    issue_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    payment_date = models.DateField(null=True, blank=True)
    subtotal_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    financial_snapshot = models.JSONField(default=dict, blank=True)
    memo = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_created')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.total_amount = quantize(Decimal(self.subtotal_amount) + Decimal(self.tax_amount))
        super().save(*args, **kwargs)

    def __str__(self):
        return self.invoice_number

    class Meta:
        abstract = True
        ordering = ['-created_at']


class OrderSale(SettlementRecord):
    """Amount billed to the shipper for one order"""
    company = models.ForeignKey('companies.Company', on_delete=models.PROTECT, related_name='order_sales')

    class Meta(SettlementRecord.Meta):
        db_table = 'order_sales'
        indexes = [
            models.Index(fields=['company', 'status'], name='order_sales_company_idx'),
        ]


class OrderPurchase(SettlementRecord):
    """Amount owed to the carrier company or driver for one order"""
    company = models.ForeignKey('companies.Company', on_delete=models.PROTECT, null=True, blank=True, related_name='order_purchases')
    driver = models.ForeignKey('drivers.Driver', on_delete=models.PROTECT, null=True, blank=True, related_name='order_purchases')

    class Meta(SettlementRecord.Meta):
        db_table = 'order_purchases'
        indexes = [
            models.Index(fields=['company', 'status'], name='order_purch_company_idx'),
            models.Index(fields=['driver', 'status'], name='order_purch_driver_idx'),
        ]


class Bundle(models.Model):
    """Fields shared by sales and purchase bundles"""
    period_from = models.DateField(null=True, blank=True)
    period_to = models.DateField(null=True, blank=True)
    period_type = models.CharField(max_length=20, choices=PERIOD_TYPE_CHOICES, default='departure')
    status = models.CharField(max_length=20, choices=BUNDLE_STATUS_CHOICES, default='draft')
    manager = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_managed')
    manager_snapshot = models.JSONField(default=dict, blank=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='bank_transfer')
    bank_code = models.CharField(max_length=10, blank=True)
    bank_account_number = models.CharField(max_length=50, blank=True)
    bank_account_holder = models.CharField(max_length=100, blank=True)
    settlement_memo = models.TextField(blank=True)
    issued_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    paid_date = models.DateField(null=True, blank=True)
    settled_at = models.DateTimeField(null=True, blank=True)
    settlement_batch_id = models.CharField(max_length=50, blank=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_amount_with_tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    item_extra_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    item_extra_amount_tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    bundle_extra_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    bundle_extra_amount_tax = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    order_count = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_created')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']


class SalesBundle(Bundle):
    company = models.ForeignKey('companies.Company', on_delete=models.PROTECT, related_name='sales_bundles')
    company_snapshot = models.JSONField(default=dict, blank=True)
    invoice_no = models.CharField(max_length=50, blank=True)

    def __str__(self):
        return self.invoice_no or f"SalesBundle-{self.pk}"

    class Meta(Bundle.Meta):
        db_table = 'sales_bundles'


class PurchaseBundle(Bundle):
    company = models.ForeignKey('companies.Company', on_delete=models.PROTECT, null=True, blank=True, related_name='purchase_bundles')
    driver = models.ForeignKey('drivers.Driver', on_delete=models.PROTECT, null=True, blank=True, related_name='purchase_bundles')
    counterparty_snapshot = models.JSONField(default=dict, blank=True)
    payment_no = models.CharField(max_length=50, blank=True)

    def __str__(self):
        return self.payment_no or f"PurchaseBundle-{self.pk}"

    class Meta(Bundle.Meta):
        db_table = 'purchase_bundles'


class SalesBundleItem(models.Model):
    bundle = models.ForeignKey(SalesBundle, on_delete=models.CASCADE, related_name='items')
    order_sale = models.OneToOneField(OrderSale, on_delete=models.PROTECT, related_name='bundle_item')
    base_amount = models.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sales_bundle_items'
        ordering = ['id']


class PurchaseBundleItem(models.Model):
    bundle = models.ForeignKey(PurchaseBundle, on_delete=models.CASCADE, related_name='items')
    order_purchase = models.OneToOneField(OrderPurchase, on_delete=models.PROTECT, related_name='bundle_item')
    base_amount = models.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'purchase_bundle_items'
        ordering = ['id']


class Adjustment(models.Model):
    """Discount or surcharge; amount is always positive, the type gives the sign"""
    type = models.CharField(max_length=20, choices=ADJUSTMENT_TYPE_CHOICES)
    description = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['created_at', 'id']


class SalesBundleAdjustment(Adjustment):
    bundle = models.ForeignKey(SalesBundle, on_delete=models.CASCADE, related_name='adjustments')

    class Meta(Adjustment.Meta):
        db_table = 'sales_bundle_adjustments'


class SalesItemAdjustment(Adjustment):
    item = models.ForeignKey(SalesBundleItem, on_delete=models.CASCADE, related_name='adjustments')

    class Meta(Adjustment.Meta):
        db_table = 'sales_item_adjustments'


class PurchaseBundleAdjustment(Adjustment):
    bundle = models.ForeignKey(PurchaseBundle, on_delete=models.CASCADE, related_name='adjustments')

    class Meta(Adjustment.Meta):
        db_table = 'purchase_bundle_adjustments'


class PurchaseItemAdjustment(Adjustment):
    item = models.ForeignKey(PurchaseBundleItem, on_delete=models.CASCADE, related_name='adjustments')

    class Meta(Adjustment.Meta):
        db_table = 'purchase_item_adjustments'

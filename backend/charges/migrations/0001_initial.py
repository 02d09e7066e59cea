from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

SETTLEMENT_STATUS = [('draft', 'Draft'), ('issued', 'Issued'), ('paid', 'Paid'), ('canceled', 'Canceled'), ('void', 'Void')]
BUNDLE_STATUS = [('draft', 'Draft'), ('issued', 'Issued'), ('paid', 'Paid'), ('canceled', 'Canceled')]
ADJUSTMENT_TYPE = [('discount', 'Discount'), ('surcharge', 'Surcharge')]
PAYMENT_METHOD = [('bank_transfer', 'Bank Transfer'), ('cash', 'Cash'), ('card', 'Card'), ('etc', 'Etc')]
PERIOD_TYPE = [('departure', 'Departure Date'), ('arrival', 'Arrival Date'), ('created', 'Created Date')]


def money(**kwargs):
    return models.DecimalField(decimal_places=2, max_digits=14, **kwargs)


def settlement_fields(prefix):
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('invoice_number', models.CharField(max_length=50, unique=True)),
        ('status', models.CharField(choices=SETTLEMENT_STATUS, default='draft', max_length=20)),
        ('issue_date', models.DateField(blank=True, null=True)),
        ('due_date', models.DateField(blank=True, null=True)),
        ('payment_date', models.DateField(blank=True, null=True)),
        ('subtotal_amount', money(default=Decimal('0.00'))),
        ('tax_amount', money(default=Decimal('0.00'))),
        ('total_amount', money(default=Decimal('0.00'))),
        ('financial_snapshot', models.JSONField(blank=True, default=dict)),
        ('memo', models.TextField(blank=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name=f'{prefix}_set', to='orders.order')),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=f'{prefix}_created', to=settings.AUTH_USER_MODEL)),
        ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=f'{prefix}_updated', to=settings.AUTH_USER_MODEL)),
    ]


def bundle_fields(prefix):
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('period_from', models.DateField(blank=True, null=True)),
        ('period_to', models.DateField(blank=True, null=True)),
        ('period_type', models.CharField(choices=PERIOD_TYPE, default='departure', max_length=20)),
        ('status', models.CharField(choices=BUNDLE_STATUS, default='draft', max_length=20)),
        ('manager_snapshot', models.JSONField(blank=True, default=dict)),
        ('payment_method', models.CharField(choices=PAYMENT_METHOD, default='bank_transfer', max_length=20)),
        ('bank_code', models.CharField(blank=True, max_length=10)),
        ('bank_account_number', models.CharField(blank=True, max_length=50)),
        ('bank_account_holder', models.CharField(blank=True, max_length=100)),
        ('settlement_memo', models.TextField(blank=True)),
        ('issued_date', models.DateField(blank=True, null=True)),
        ('due_date', models.DateField(blank=True, null=True)),
        ('paid_date', models.DateField(blank=True, null=True)),
        ('settled_at', models.DateTimeField(blank=True, null=True)),
        ('settlement_batch_id', models.CharField(blank=True, max_length=50)),
        ('total_amount', money(default=Decimal('0.00'))),
        ('total_tax_amount', money(default=Decimal('0.00'))),
        ('total_amount_with_tax', money(default=Decimal('0.00'))),
        ('item_extra_amount', money(default=Decimal('0.00'))),
        ('item_extra_amount_tax', money(default=Decimal('0.00'))),
        ('bundle_extra_amount', money(default=Decimal('0.00'))),
        ('bundle_extra_amount_tax', money(default=Decimal('0.00'))),
        ('order_count', models.PositiveIntegerField(default=0)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('manager', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=f'{prefix}_managed', to=settings.AUTH_USER_MODEL)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=f'{prefix}_created', to=settings.AUTH_USER_MODEL)),
        ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=f'{prefix}_updated', to=settings.AUTH_USER_MODEL)),
    ]


def adjustment_fields(prefix):
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('type', models.CharField(choices=ADJUSTMENT_TYPE, max_length=20)),
        ('description', models.CharField(blank=True, max_length=255)),
        ('amount', money()),
        ('tax_amount', money(default=Decimal('0.00'))),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=f'{prefix}_created', to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('companies', '0001_initial'),
        ('drivers', '0001_initial'),
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ChargeGroup',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage', models.CharField(choices=[('estimate', 'Estimate'), ('progress', 'In Progress'), ('completed', 'Completed')], default='estimate', max_length=20)),
                ('reason', models.CharField(choices=[('base_freight', 'Base Freight'), ('extra_wait', 'Extra Waiting'), ('night_fee', 'Night Fee'), ('toll', 'Toll'), ('extra_stop', 'Extra Stop'), ('discount', 'Discount'), ('penalty', 'Penalty'), ('etc', 'Etc')], default='base_freight', max_length=20)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('is_locked', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='charge_groups', to='orders.order')),
                ('dispatch', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='charge_groups', to='orders.orderdispatch')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='charge_groups_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'charge_groups',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='ChargeLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('side', models.CharField(choices=[('sales', 'Sales'), ('purchase', 'Purchase')], max_length=10)),
                ('amount', money()),
                ('tax_rate', models.DecimalField(decimal_places=2, default=Decimal('10.00'), max_digits=5)),
                ('tax_amount', money(default=Decimal('0.00'))),
                ('memo', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='charges.chargegroup')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='charge_lines_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'charge_lines',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='OrderSale',
            fields=settlement_fields('ordersale') + [
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_sales', to='companies.company')),
            ],
            options={
                'db_table': 'order_sales',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [models.Index(fields=['company', 'status'], name='order_sales_company_idx')],
            },
        ),
        migrations.CreateModel(
            name='OrderPurchase',
            fields=settlement_fields('orderpurchase') + [
                ('company', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='order_purchases', to='companies.company')),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='order_purchases', to='drivers.driver')),
            ],
            options={
                'db_table': 'order_purchases',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [models.Index(fields=['company', 'status'], name='order_purch_company_idx'), models.Index(fields=['driver', 'status'], name='order_purch_driver_idx')],
            },
        ),
        migrations.CreateModel(
            name='SalesBundle',
            fields=bundle_fields('salesbundle') + [
                ('company_snapshot', models.JSONField(blank=True, default=dict)),
                ('invoice_no', models.CharField(blank=True, max_length=50)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales_bundles', to='companies.company')),
            ],
            options={
                'db_table': 'sales_bundles',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='PurchaseBundle',
            fields=bundle_fields('purchasebundle') + [
                ('counterparty_snapshot', models.JSONField(blank=True, default=dict)),
                ('payment_no', models.CharField(blank=True, max_length=50)),
                ('company', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='purchase_bundles', to='companies.company')),
                ('driver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='purchase_bundles', to='drivers.driver')),
            ],
            options={
                'db_table': 'purchase_bundles',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='SalesBundleItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('base_amount', money()),
                ('tax_amount', money(default=Decimal('0.00'))),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('bundle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='charges.salesbundle')),
                ('order_sale', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='bundle_item', to='charges.ordersale')),
            ],
            options={
                'db_table': 'sales_bundle_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='PurchaseBundleItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('base_amount', money()),
                ('tax_amount', money(default=Decimal('0.00'))),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('bundle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='charges.purchasebundle')),
                ('order_purchase', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='bundle_item', to='charges.orderpurchase')),
            ],
            options={
                'db_table': 'purchase_bundle_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='SalesBundleAdjustment',
            fields=adjustment_fields('salesbundleadjustment') + [
                ('bundle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='adjustments', to='charges.salesbundle')),
            ],
            options={
                'db_table': 'sales_bundle_adjustments',
                'ordering': ['created_at', 'id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='SalesItemAdjustment',
            fields=adjustment_fields('salesitemadjustment') + [
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='adjustments', to='charges.salesbundleitem')),
            ],
            options={
                'db_table': 'sales_item_adjustments',
                'ordering': ['created_at', 'id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='PurchaseBundleAdjustment',
            fields=adjustment_fields('purchasebundleadjustment') + [
                ('bundle', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='adjustments', to='charges.purchasebundle')),
            ],
            options={
                'db_table': 'purchase_bundle_adjustments',
                'ordering': ['created_at', 'id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='PurchaseItemAdjustment',
            fields=adjustment_fields('purchaseitemadjustment') + [
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='adjustments', to='charges.purchasebundleitem')),
            ],
            options={
                'db_table': 'purchase_item_adjustments',
                'ordering': ['created_at', 'id'],
                'abstract': False,
            },
        ),
    ]

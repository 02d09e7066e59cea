import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('addresses', '0001_initial'),
        ('companies', '0001_initial'),
        ('drivers', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('contact_snapshot', models.JSONField(blank=True, default=dict)),
                ('flow_status', models.CharField(choices=[('requested', 'Requested'), ('awaiting_dispatch', 'Awaiting Dispatch'), ('dispatched', 'Dispatched'), ('awaiting_pickup', 'Awaiting Pickup'), ('picked_up', 'Picked Up'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('completed', 'Completed')], default='requested', max_length=30)),
                ('cargo_name', models.CharField(max_length=255)),
                ('requested_vehicle_type', models.CharField(choices=[('cargo', 'Cargo'), ('wing_body', 'Wing Body'), ('box', 'Box'), ('refrigerated', 'Refrigerated'), ('frozen', 'Frozen'), ('lift', 'Lift'), ('trailer', 'Trailer'), ('damas', 'Damas'), ('labo', 'Labo')], max_length=20)),
                ('requested_vehicle_weight', models.CharField(choices=[('1t', '1t'), ('1.4t', '1.4t'), ('2.5t', '2.5t'), ('3.5t', '3.5t'), ('5t', '5t'), ('8t', '8t'), ('11t', '11t'), ('14t', '14t'), ('15t', '15t'), ('18t', '18t'), ('25t', '25t')], max_length=10)),
                ('pickup_snapshot', models.JSONField(blank=True, default=dict)),
                ('pickup_name', models.CharField(blank=True, max_length=255)),
                ('pickup_contact_name', models.CharField(blank=True, max_length=100)),
                ('pickup_contact_phone', models.CharField(blank=True, max_length=20)),
                ('pickup_date', models.DateField()),
                ('pickup_time', models.TimeField(blank=True, null=True)),
                ('delivery_snapshot', models.JSONField(blank=True, default=dict)),
                ('delivery_name', models.CharField(blank=True, max_length=255)),
                ('delivery_contact_name', models.CharField(blank=True, max_length=100)),
                ('delivery_contact_phone', models.CharField(blank=True, max_length=20)),
                ('delivery_date', models.DateField()),
                ('delivery_time', models.TimeField(blank=True, null=True)),
                ('estimated_price_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('price_type', models.CharField(choices=[('fixed', 'Fixed'), ('negotiable', 'Negotiable')], default='fixed', max_length=20)),
                ('tax_type', models.CharField(choices=[('taxable', 'Taxable'), ('tax_free', 'Tax Free')], default='taxable', max_length=20)),
                ('estimated_distance_km', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('estimated_duration_min', models.PositiveIntegerField(blank=True, null=True)),
                ('is_canceled', models.BooleanField(default=False)),
                ('memo', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='companies.company')),
                ('contact_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contact_orders', to=settings.AUTH_USER_MODEL)),
                ('pickup_address', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pickup_orders', to='addresses.address')),
                ('delivery_address', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='delivery_orders', to='addresses.address')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders_created', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['company', 'flow_status'], name='orders_company_status_idx'), models.Index(fields=['pickup_date'], name='orders_pickup_date_idx'), models.Index(fields=['delivery_date'], name='orders_delivery_date_idx')],
            },
        ),
        migrations.CreateModel(
            name='OrderDispatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('driver_snapshot', models.JSONField(blank=True, default=dict)),
                ('vehicle_number', models.CharField(max_length=20)),
                ('vehicle_type', models.CharField(choices=[('cargo', 'Cargo'), ('wing_body', 'Wing Body'), ('box', 'Box'), ('refrigerated', 'Refrigerated'), ('frozen', 'Frozen'), ('lift', 'Lift'), ('trailer', 'Trailer'), ('damas', 'Damas'), ('labo', 'Labo')], max_length=20)),
                ('vehicle_weight', models.CharField(choices=[('1t', '1t'), ('1.4t', '1.4t'), ('2.5t', '2.5t'), ('3.5t', '3.5t'), ('5t', '5t'), ('8t', '8t'), ('11t', '11t'), ('14t', '14t'), ('15t', '15t'), ('18t', '18t'), ('25t', '25t')], max_length=10)),
                ('vehicle_connection', models.CharField(blank=True, max_length=100)),
                ('agreed_freight_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('broker_memo', models.TextField(blank=True)),
                ('broker_flow_status', models.CharField(choices=[('requested', 'Requested'), ('awaiting_dispatch', 'Awaiting Dispatch'), ('dispatched', 'Dispatched'), ('awaiting_pickup', 'Awaiting Pickup'), ('picked_up', 'Picked Up'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('completed', 'Completed')], default='dispatched', max_length=30)),
                ('is_closed', models.BooleanField(default=False)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='dispatch', to='orders.order')),
                ('broker_company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='broker_dispatches', to='companies.company')),
                ('broker_manager', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='managed_dispatches', to=settings.AUTH_USER_MODEL)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='dispatches', to='drivers.driver')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispatches_created', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dispatches_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'order_dispatches',
                'ordering': ['-created_at'],
            },
        ),
    ]

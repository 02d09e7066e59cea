from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('addresses', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DistanceCache',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pickup_coordinates', models.JSONField(default=dict)),
                ('delivery_coordinates', models.JSONField(default=dict)),
                ('priority', models.CharField(choices=[('RECOMMEND', 'Recommended'), ('TIME', 'Fastest'), ('DISTANCE', 'Shortest')], default='RECOMMEND', max_length=20)),
                ('distance_km', models.DecimalField(decimal_places=2, max_digits=10)),
                ('duration_min', models.PositiveIntegerField()),
                ('route_summary', models.JSONField(blank=True, default=dict)),
                ('is_valid', models.BooleanField(default=True)),
                ('hit_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('pickup_address', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='distance_cache_pickups', to='addresses.address')),
                ('delivery_address', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='distance_cache_deliveries', to='addresses.address')),
            ],
            options={
                'db_table': 'distance_cache',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['pickup_address', 'delivery_address', 'priority'], name='distance_cache_pair_idx'), models.Index(fields=['is_valid', 'created_at'], name='distance_cache_valid_idx')],
            },
        ),
        migrations.CreateModel(
            name='ApiUsageLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('api_type', models.CharField(choices=[('directions', 'Directions'), ('search_address', 'Address Search')], default='directions', max_length=30)),
                ('endpoint', models.CharField(blank=True, max_length=200)),
                ('request_params', models.JSONField(blank=True, default=dict)),
                ('response_status', models.PositiveIntegerField()),
                ('response_time_ms', models.PositiveIntegerField(default=0)),
                ('success', models.BooleanField(default=False)),
                ('error_message', models.CharField(blank=True, max_length=500)),
                ('result_count', models.PositiveIntegerField(blank=True, null=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, max_length=500)),
                ('estimated_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='api_usage_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'api_usage_logs',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['api_type', 'created_at'], name='api_usage_type_idx'), models.Index(fields=['created_at'], name='api_usage_created_idx')],
            },
        ),
    ]

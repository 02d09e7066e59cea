import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('companies', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Driver',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('phone_number', models.CharField(max_length=20)),
                ('vehicle_number', models.CharField(max_length=20, unique=True)),
                ('vehicle_type', models.CharField(choices=[('cargo', 'Cargo'), ('wing_body', 'Wing Body'), ('box', 'Box'), ('refrigerated', 'Refrigerated'), ('frozen', 'Frozen'), ('lift', 'Lift'), ('trailer', 'Trailer'), ('damas', 'Damas'), ('labo', 'Labo')], max_length=20)),
                ('vehicle_weight', models.CharField(choices=[('1t', '1t'), ('1.4t', '1.4t'), ('2.5t', '2.5t'), ('3.5t', '3.5t'), ('5t', '5t'), ('8t', '8t'), ('11t', '11t'), ('14t', '14t'), ('15t', '15t'), ('18t', '18t'), ('25t', '25t')], max_length=10)),
                ('company_type', models.CharField(choices=[('individual', 'Individual'), ('affiliated', 'Affiliated')], default='individual', max_length=20)),
                ('business_number', models.CharField(blank=True, max_length=20)),
                ('manufacture_year', models.PositiveIntegerField(blank=True, null=True)),
                ('address_snapshot', models.JSONField(blank=True, default=dict)),
                ('bank_code', models.CharField(blank=True, max_length=10)),
                ('bank_account_number', models.CharField(blank=True, max_length=50)),
                ('bank_account_holder', models.CharField(blank=True, max_length=100)),
                ('is_active', models.BooleanField(default=True)),
                ('inactive_reason', models.CharField(blank=True, max_length=255)),
                ('last_dispatched_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='drivers', to='companies.company')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='drivers_created', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='drivers_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'drivers',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['phone_number'], name='drivers_phone_idx'), models.Index(fields=['vehicle_type', 'vehicle_weight'], name='drivers_vehicle_idx')],
            },
        ),
        migrations.CreateModel(
            name='DriverNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.CharField(max_length=500)),
                ('date', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='driver_notes', to=settings.AUTH_USER_MODEL)),
                ('driver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notes', to='drivers.driver')),
            ],
            options={
                'db_table': 'driver_notes',
                'ordering': ['-date', '-created_at'],
            },
        ),
    ]

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Company',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('business_number', models.CharField(max_length=20, unique=True)),
                ('ceo_name', models.CharField(max_length=100)),
                ('type', models.CharField(choices=[('broker', 'Broker'), ('shipper', 'Shipper'), ('carrier', 'Carrier')], max_length=20)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=20)),
                ('address_postal_code', models.CharField(blank=True, max_length=10)),
                ('address_road', models.CharField(blank=True, max_length=255)),
                ('address_detail', models.CharField(blank=True, max_length=255)),
                ('contact_tel', models.CharField(blank=True, max_length=20)),
                ('contact_mobile', models.CharField(blank=True, max_length=20)),
                ('contact_email', models.EmailField(blank=True, max_length=254)),
                ('bank_code', models.CharField(blank=True, max_length=10)),
                ('bank_account_number', models.CharField(blank=True, max_length=50)),
                ('bank_account_holder', models.CharField(blank=True, max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='companies_created', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='companies_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'companies',
                'ordering': ['name'],
                'verbose_name_plural': 'companies',
                'indexes': [models.Index(fields=['type', 'status'], name='companies_type_status_idx'), models.Index(fields=['name'], name='companies_name_idx')],
            },
        ),
        migrations.CreateModel(
            name='CompanyWarning',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('text', models.TextField()),
                ('category', models.CharField(choices=[('payment', 'Payment'), ('cargo', 'Cargo'), ('contact', 'Contact'), ('etc', 'Etc')], default='etc', max_length=20)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='warnings', to='companies.company')),
            ],
            options={
                'db_table': 'company_warnings',
                'ordering': ['sort_order', 'created_at'],
            },
        ),
    ]

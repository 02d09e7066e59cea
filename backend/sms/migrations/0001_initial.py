import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

ROLE_TYPES = [('requester', 'Requester'), ('shipper', 'Shipper'), ('load', 'Loading Site'), ('unload', 'Unloading Site'), ('broker', 'Broker'), ('driver', 'Driver')]
MESSAGE_TYPES = [('complete', 'Dispatch Complete'), ('update', 'Dispatch Update'), ('cancel', 'Dispatch Cancel'), ('custom', 'Custom')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SmsTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role_type', models.CharField(choices=ROLE_TYPES, max_length=20)),
                ('message_type', models.CharField(choices=MESSAGE_TYPES, max_length=20)),
                ('title', models.CharField(max_length=100)),
                ('content', models.TextField()),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'sms_templates',
                'ordering': ['role_type', 'message_type', 'id'],
            },
        ),
        migrations.CreateModel(
            name='SmsMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.TextField()),
                ('message_type', models.CharField(choices=MESSAGE_TYPES, default='custom', max_length=20)),
                ('request_status', models.CharField(choices=[('pending', 'Pending'), ('dispatched', 'Dispatched'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('dispatched_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sms_messages', to='orders.order')),
                ('sender', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sms_messages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'sms_messages',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['order', 'created_at'], name='sms_messages_order_idx')],
            },
        ),
        migrations.CreateModel(
            name='SmsRecipient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('phone', models.CharField(max_length=20)),
                ('role_type', models.CharField(choices=ROLE_TYPES, max_length=20)),
                ('delivery_status', models.CharField(choices=[('pending', 'Pending'), ('success', 'Success'), ('failed', 'Failed'), ('invalid_number', 'Invalid Number')], default='pending', max_length=20)),
                ('error_message', models.TextField(blank=True)),
                ('api_message_id', models.CharField(blank=True, max_length=100)),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('message', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recipients', to='sms.smsmessage')),
            ],
            options={
                'db_table': 'sms_recipients',
                'ordering': ['id'],
            },
        ),
    ]

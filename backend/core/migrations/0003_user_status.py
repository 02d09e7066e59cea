from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0002_user_company'),
    ]

    operations = [
        migrations.AddField(
            model_name='user',
            name='status',
            field=models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('locked', 'Locked')], default='active', max_length=20),
        ),
        migrations.AlterField(
            model_name='changelog',
            name='entity_type',
            field=models.CharField(choices=[('address', 'Address'), ('company', 'Company'), ('company_warning', 'Company Warning'), ('driver', 'Driver'), ('order', 'Order'), ('dispatch', 'Dispatch'), ('user', 'User')], max_length=30),
        ),
    ]

"""
Management command to add the default SMS templates to the database
"""
from django.core.management.base import BaseCommand
from backend.sms.models import SmsTemplate


class Command(BaseCommand):
    help = "Adds the default SMS templates to the database"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear all existing templates before adding the defaults',
        )

    def handle(self, *args, **options):
        clear = options['clear']

        # (role_type, message_type, title, content)
        templates = [
            ('shipper', 'complete', 'Dispatch complete (shipper)',
             '[Order {{order_id}}] Pickup is scheduled for today. Driver: {{driver_name}} {{driver_phone}}'),
            ('load', 'complete', 'Dispatch complete (loading site)',
             '[Order {{order_id}}] Pickup is scheduled for today. Driver: {{driver_name}} {{driver_phone}}'),
            ('unload', 'complete', 'Dispatch complete (unloading site)',
             '[Order {{order_id}}] Delivery is scheduled for today. Driver: {{driver_name}} {{driver_phone}}'),
            ('driver', 'update', 'Dispatch changed (driver)',
             '[Order {{order_id}}] Dispatch details changed. Pickup: {{pickup_address}}, Delivery: {{delivery_address}}'),
            ('shipper', 'cancel', 'Dispatch canceled (shipper)',
             '[Order {{order_id}}] The dispatch has been canceled.'),
            ('driver', 'cancel', 'Dispatch canceled (driver)',
             '[Order {{order_id}}] Your dispatch has been canceled.'),
        ]

        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(self.style.SUCCESS("ADDING SMS TEMPLATES"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        if clear:
            self.stdout.write(self.style.WARNING("Clearing all existing templates..."))
            SmsTemplate.objects.all().delete()
            self.stdout.write(self.style.SUCCESS("All templates cleared."))

        created_count = 0
        skipped_count = 0

        for role_type, message_type, title, content in templates:
            template, created = SmsTemplate.objects.get_or_create(
                role_type=role_type,
                message_type=message_type,
                title=title,
                defaults={
                    'content': content,
                    'is_active': True,
                }
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"  ✓ Created: {title}"))
            else:
                skipped_count += 1
                self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already exists): {title}"))

        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(f"Templates Created: {created_count}")
        self.stdout.write(f"Templates Skipped (already exist): {skipped_count}")
        self.stdout.write(f"Total Templates in Database: {SmsTemplate.objects.count()}")

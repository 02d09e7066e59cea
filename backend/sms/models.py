from django.db import models
from django.conf import settings

ROLE_TYPE_CHOICES = [
    ('requester', 'Requester'),
    ('shipper', 'Shipper'),
    ('load', 'Loading Site'),
    ('unload', 'Unloading Site'),
    ('broker', 'Broker'),
    ('driver', 'Driver'),
]

MESSAGE_TYPE_CHOICES = [
    ('complete', 'Dispatch Complete'),
    ('update', 'Dispatch Update'),
    ('cancel', 'Dispatch Cancel'),
    ('custom', 'Custom'),
]


class SmsTemplate(models.Model):
    role_type = models.CharField(max_length=20, choices=ROLE_TYPE_CHOICES)
    message_type = models.CharField(max_length=20, choices=MESSAGE_TYPE_CHOICES)
    title = models.CharField(max_length=100)
    content = models.TextField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'sms_templates'
        ordering = ['role_type', 'message_type', 'id']


class SmsMessage(models.Model):
    """One SMS send request for an order, fanned out to its recipients"""
    REQUEST_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('dispatched', 'Dispatched'),
        ('failed', 'Failed'),
    ]

    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, related_name='sms_messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='sms_messages')
    content = models.TextField()
    message_type = models.CharField(max_length=20, choices=MESSAGE_TYPE_CHOICES, default='custom')
    request_status = models.CharField(max_length=20, choices=REQUEST_STATUS_CHOICES, default='pending')
    dispatched_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"SMS-{self.pk} for order {self.order_id}"

    class Meta:
        db_table = 'sms_messages'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['order', 'created_at'], name='sms_messages_order_idx'),
        ]


class SmsRecipient(models.Model):
    DELIVERY_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('success', 'Success'),
        ('failed', 'Failed'),
        ('invalid_number', 'Invalid Number'),
    ]

    message = models.ForeignKey(SmsMessage, on_delete=models.CASCADE, related_name='recipients')
    name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20)
    role_type = models.CharField(max_length=20, choices=ROLE_TYPE_CHOICES)
    delivery_status = models.CharField(max_length=20, choices=DELIVERY_STATUS_CHOICES, default='pending')
    error_message = models.TextField(blank=True)
    api_message_id = models.CharField(max_length=100, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"{self.name} <{self.phone}>"

    class Meta:
        db_table = 'sms_recipients'
        ordering = ['id']

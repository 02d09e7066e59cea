from django.contrib import admin
from .models import SmsTemplate, SmsMessage, SmsRecipient


@admin.register(SmsTemplate)
class SmsTemplateAdmin(admin.ModelAdmin):
    list_display = ['title', 'role_type', 'message_type', 'is_active']
    list_filter = ['role_type', 'message_type', 'is_active']
    search_fields = ['title', 'content']


class SmsRecipientInline(admin.TabularInline):
    model = SmsRecipient
    extra = 0


@admin.register(SmsMessage)
class SmsMessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'order', 'sender', 'message_type', 'request_status', 'created_at']
    list_filter = ['message_type', 'request_status']
    inlines = [SmsRecipientInline]

from rest_framework import serializers

from .models import MESSAGE_TYPE_CHOICES, ROLE_TYPE_CHOICES, SmsMessage, SmsRecipient, SmsTemplate


class SmsTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = SmsTemplate
        fields = ['id', 'role_type', 'message_type', 'title', 'content', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class SmsRecipientSerializer(serializers.ModelSerializer):
    class Meta:
        model = SmsRecipient
        fields = ['id', 'name', 'phone', 'role_type', 'delivery_status', 'error_message', 'api_message_id', 'sent_at']


class SmsMessageSerializer(serializers.ModelSerializer):
    recipients = SmsRecipientSerializer(many=True, read_only=True)
    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = SmsMessage
        fields = ['id', 'order', 'sender', 'sender_name', 'content', 'message_type', 'request_status',
                  'dispatched_at', 'recipients', 'created_at']

    def get_sender_name(self, obj):
        return obj.sender.display_name if obj.sender_id else None


class RecipientInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20)
    role_type = serializers.ChoiceField(choices=ROLE_TYPE_CHOICES)


class SmsDispatchSerializer(serializers.Serializer):
    order = serializers.IntegerField()
    content = serializers.CharField()
    message_type = serializers.ChoiceField(choices=MESSAGE_TYPE_CHOICES, default='custom')
    recipients = RecipientInputSerializer(many=True)

    def validate_recipients(self, value):
        if not value:
            raise serializers.ValidationError("At least one recipient is required")
        return value

import logging
import re

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from backend.orders.models import Order
from .models import SmsMessage, SmsRecipient, SmsTemplate
from .serializers import SmsDispatchSerializer, SmsMessageSerializer, SmsTemplateSerializer
from .sms_service import SmsGatewayError, is_configured, send_sms

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r'^01[0-9]-\d{3,4}-\d{4}$')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sms_dispatch(request):
    """
    Send an SMS about an order to its participants.

    Recipients with malformed phone numbers are stored as invalid_number and
    skipped. The rest go to the gateway in one request.
    """
    serializer = SmsDispatchSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    order = get_object_or_404(Order, pk=data['order'])

    with transaction.atomic():
        message = SmsMessage.objects.create(
            order=order,
            sender=request.user,
            content=data['content'],
            message_type=data['message_type'],
        )
        recipients = []
        for recipient in data['recipients']:
            valid = bool(PHONE_PATTERN.match(recipient['phone']))
            recipients.append(SmsRecipient.objects.create(
                message=message,
                name=recipient['name'],
                phone=recipient['phone'],
                role_type=recipient['role_type'],
                delivery_status='pending' if valid else 'invalid_number',
                error_message='' if valid else 'Invalid phone number format',
            ))

    sendable = [r for r in recipients if r.delivery_status == 'pending']
    if not sendable:
        message.request_status = 'failed'
    elif not is_configured():
        logger.warning(f"SMS_API_URL is not configured; message {message.pk} left pending")
    else:
        try:
            results = send_sms(sorted({r.phone for r in sendable}), message.content)
        except SmsGatewayError as e:
            for recipient in sendable:
                recipient.delivery_status = 'failed'
                recipient.error_message = str(e)
                recipient.save(update_fields=['delivery_status', 'error_message'])
            message.request_status = 'failed'
        else:
            now = timezone.now()
            for recipient in sendable:
                result = results[recipient.phone]
                recipient.delivery_status = result['status']
                recipient.error_message = result['error']
                recipient.api_message_id = result['message_id']
                recipient.sent_at = now if result['status'] == 'success' else None
                recipient.save(update_fields=['delivery_status', 'error_message', 'api_message_id', 'sent_at'])
            message.request_status = 'dispatched'
            message.dispatched_at = now
    message.save(update_fields=['request_status', 'dispatched_at', 'updated_at'])

    success_count = sum(1 for r in recipients if r.delivery_status == 'success')
    failure_count = sum(1 for r in recipients if r.delivery_status in ('failed', 'invalid_number'))
    logger.info(f"SMS {message.pk} for order {order.pk}: {success_count} sent, {failure_count} failed")

    return Response({
        'message_id': message.pk,
        'status': message.request_status,
        'success_count': success_count,
        'failure_count': failure_count,
        'results': [
            {
                'name': r.name,
                'phone': r.phone,
                'role_type': r.role_type,
                'status': r.delivery_status,
                'error_message': r.error_message,
                'api_message_id': r.api_message_id,
            }
            for r in recipients
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sms_history(request, order_id):
    """Messages sent for an order, oldest first, with their recipients"""
    order = get_object_or_404(Order, pk=order_id)
    messages = (
        SmsMessage.objects.filter(order=order)
        .select_related('sender')
        .prefetch_related('recipients')
        .order_by('created_at', 'id')
    )
    return Response(SmsMessageSerializer(messages, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sms_templates(request):
    """Active templates filtered by role_type / message_type, or add a template"""
    if request.method == 'GET':
        templates = SmsTemplate.objects.all()
        if request.query_params.get('include_inactive') != 'true':
            templates = templates.filter(is_active=True)
        role_type = request.query_params.get('role_type')
        if role_type:
            templates = templates.filter(role_type=role_type)
        message_type = request.query_params.get('message_type')
        if message_type:
            templates = templates.filter(message_type=message_type)
        return Response(SmsTemplateSerializer(templates, many=True).data)

    serializer = SmsTemplateSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

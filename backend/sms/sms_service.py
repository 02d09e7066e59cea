"""
SMS gateway client.

The gateway accepts one JSON POST per message:
    {"from": sender, "text": body, "messages": [{"to": phone}, ...]}
and answers with per-recipient results:
    {"results": [{"to": phone, "status": "success"|"failed", "message_id": ..., "error": ...}]}
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class SmsGatewayError(Exception):
    pass


def is_configured():
    return bool(settings.SMS_API_URL)


def send_sms(phones, text):
    """
    Send one text to many phones

    Returns:
        dict keyed by phone: {'status': 'success'|'failed', 'message_id': str, 'error': str}

    Raises:
        SmsGatewayError: the request itself failed
    """
    payload = {
        'from': settings.SMS_SENDER_NUMBER,
        'text': text,
        'messages': [{'to': phone} for phone in phones],
    }
    headers = {'Content-Type': 'application/json'}
    if settings.SMS_API_KEY:
        headers['Authorization'] = f'Bearer {settings.SMS_API_KEY}'

    try:
        response = requests.post(settings.SMS_API_URL, json=payload, headers=headers, timeout=settings.SMS_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.warning(f"SMS gateway request failed for {len(phones)} recipients: {str(e)}")
        raise SmsGatewayError(str(e))
    except ValueError:
        raise SmsGatewayError('SMS gateway returned invalid JSON')

    results = {}
    for item in data.get('results') or []:
        phone = item.get('to')
        if not phone:
            continue
        results[phone] = {
            'status': 'success' if item.get('status') == 'success' else 'failed',
            'message_id': item.get('message_id') or '',
            'error': item.get('error') or '',
        }

    # Phones the gateway did not report on are treated as failed
    for phone in phones:
        results.setdefault(phone, {'status': 'failed', 'message_id': '', 'error': 'No result from gateway'})

    logger.info(f"SMS gateway accepted {len(phones)} recipients")
    return results

"""
Test suite for SMS module
Tests: phone validation, gateway results, unconfigured gateway, history and templates
"""
from io import StringIO
from unittest.mock import patch, MagicMock

import requests
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.sms.models import SmsMessage, SmsRecipient, SmsTemplate

GATEWAY = 'https://sms.example.com/send'


def gateway_response(results):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {'results': results}
    return response


class SmsDispatchTests(TestCase):
    """Test SMS dispatch endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order()

    def _dispatch(self, recipients, content='Pickup at 9am'):
        return self.client.post('/api/v1/sms/dispatch/', {
            'order': self.order.id,
            'content': content,
            'message_type': 'complete',
            'recipients': recipients,
        }, format='json')

    @override_settings(SMS_API_URL=GATEWAY, SMS_API_KEY='secret', SMS_SENDER_NUMBER='02-000-0000')
    @patch('backend.sms.sms_service.requests.post')
    def test_mixed_results(self, mock_post):
        mock_post.return_value = gateway_response([
            {'to': '010-1111-2222', 'status': 'success', 'message_id': 'M1'},
            {'to': '010-3333-4444', 'status': 'failed', 'error': 'Blocked'},
        ])
        response = self._dispatch([
            {'name': 'Shipper', 'phone': '010-1111-2222', 'role_type': 'shipper'},
            {'name': 'Driver', 'phone': '010-3333-4444', 'role_type': 'driver'},
            {'name': 'Typo', 'phone': '0101112222', 'role_type': 'load'},
        ])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'dispatched')
        self.assertEqual(response.data['success_count'], 1)
        self.assertEqual(response.data['failure_count'], 2)
        statuses = {r['name']: r['status'] for r in response.data['results']}
        self.assertEqual(statuses, {'Shipper': 'success', 'Driver': 'failed', 'Typo': 'invalid_number'})

        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer secret')
        self.assertEqual(len(kwargs['json']['messages']), 2)
        self.assertEqual(SmsRecipient.objects.get(name='Shipper').api_message_id, 'M1')

    @override_settings(SMS_API_URL=GATEWAY)
    @patch('backend.sms.sms_service.requests.post')
    def test_gateway_down(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('refused')
        response = self._dispatch([{'name': 'Driver', 'phone': '010-3333-4444', 'role_type': 'driver'}])
        self.assertEqual(response.data['status'], 'failed')
        self.assertEqual(response.data['failure_count'], 1)

    @override_settings(SMS_API_URL=GATEWAY)
    @patch('backend.sms.sms_service.requests.post')
    def test_unreported_phone_is_failed(self, mock_post):
        mock_post.return_value = gateway_response([])
        response = self._dispatch([{'name': 'Driver', 'phone': '010-3333-4444', 'role_type': 'driver'}])
        self.assertEqual(response.data['results'][0]['status'], 'failed')

    @override_settings(SMS_API_URL='')
    def test_unconfigured_gateway_leaves_pending(self):
        response = self._dispatch([{'name': 'Driver', 'phone': '010-3333-4444', 'role_type': 'driver'}])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(SmsRecipient.objects.get().delivery_status, 'pending')

    def test_all_invalid(self):
        response = self._dispatch([{'name': 'Typo', 'phone': '12345', 'role_type': 'driver'}])
        self.assertEqual(response.data['status'], 'failed')
        self.assertEqual(response.data['failure_count'], 1)

    def test_requires_recipients(self):
        response = self._dispatch([])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SmsMessage.objects.exists())

    def test_unknown_order(self):
        response = self.client.post('/api/v1/sms/dispatch/', {
            'order': 999999, 'content': 'x',
            'recipients': [{'name': 'A', 'phone': '010-1111-2222', 'role_type': 'driver'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @override_settings(SMS_API_URL='')
    def test_history(self):
        self._dispatch([{'name': 'Driver', 'phone': '010-3333-4444', 'role_type': 'driver'}], content='first')
        self._dispatch([{'name': 'Driver', 'phone': '010-3333-4444', 'role_type': 'driver'}], content='second')
        response = self.client.get(f'/api/v1/sms/history/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['content'] for m in response.data], ['first', 'second'])
        self.assertEqual(len(response.data[0]['recipients']), 1)


class SmsTemplateTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_seed_command_is_idempotent(self):
        call_command('seed_sms_templates', stdout=StringIO())
        count = SmsTemplate.objects.count()
        call_command('seed_sms_templates', stdout=StringIO())
        self.assertEqual(SmsTemplate.objects.count(), count)
        self.assertGreater(count, 0)

    def test_filter_templates(self):
        SmsTemplate.objects.create(role_type='driver', message_type='cancel', title='A', content='a')
        SmsTemplate.objects.create(role_type='shipper', message_type='cancel', title='B', content='b')
        SmsTemplate.objects.create(role_type='driver', message_type='cancel', title='C', content='c', is_active=False)
        response = self.client.get('/api/v1/sms/templates/', {'role_type': 'driver'})
        self.assertEqual([t['title'] for t in response.data], ['A'])

    def test_create_template(self):
        response = self.client.post('/api/v1/sms/templates/', {
            'role_type': 'driver', 'message_type': 'update', 'title': 'Changed', 'content': 'New time'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

"""
Tests for core helpers: change logging, diffing, pagination and auth endpoints
"""
from decimal import Decimal

from django.test import TestCase, RequestFactory, override_settings
from rest_framework import status

from backend.core.models import ChangeLog, Setting
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import (
    compute_diff, log_change, get_actor, get_client_ip, parse_id_list, get_default_tax_rate,
    TAX_RATE_SETTING_KEY,
)


class ComputeDiffTests(TestCase):

    def test_changed_fields_only(self):
        diff = compute_diff({'name': 'A', 'memo': 'x'}, {'name': 'B', 'memo': 'x'})
        self.assertEqual(diff, {'name': {'old': 'A', 'new': 'B'}})

    def test_timestamps_ignored(self):
        diff = compute_diff({'updated_at': '1'}, {'updated_at': '2'})
        self.assertEqual(diff, {})

    def test_dotted_paths(self):
        """Nested JSON fields can be compared by dotted path"""
        old = {'metadata': {'lat': 37.1, 'lng': 127.0}}
        new = {'metadata': {'lat': 37.2, 'lng': 127.0}}
        diff = compute_diff(old, new, fields=['metadata.lat', 'metadata.lng'])
        self.assertEqual(diff, {'metadata.lat': {'old': 37.1, 'new': 37.2}})


class LogChangeTests(TestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.user = TestDataFactory.create_user()

    def test_create_stores_full_snapshot(self):
        request = self.factory.post('/', REMOTE_ADDR='10.0.0.1')
        request.user = self.user
        entry = log_change(request, 'company', 5, 'create', new_data={'name': 'ACME'})
        self.assertEqual(entry.entity_id, '5')
        self.assertEqual(entry.diff, {'all': {'name': 'ACME'}})
        self.assertEqual(entry.changed_by, self.user)
        self.assertEqual(entry.ip_address, '10.0.0.1')

    def test_missing_fields_skipped(self):
        self.assertIsNone(log_change(None, None, 1, 'update'))
        self.assertEqual(ChangeLog.objects.count(), 0)

    def test_header_actor(self):
        """Relayed requests identify the actor through x-user-* headers"""
        request = self.factory.post('/', HTTP_X_USER_ID=str(self.user.pk), HTTP_X_USER_NAME='Relay')
        actor = get_actor(request)
        self.assertEqual(actor['user'], self.user)
        self.assertEqual(actor['name'], 'Relay')

    def test_system_actor(self):
        actor = get_actor(None)
        self.assertIsNone(actor['user'])
        self.assertEqual(actor['name'], 'system')

    def test_forwarded_ip(self):
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='1.2.3.4, 5.6.7.8')
        self.assertEqual(get_client_ip(request), '1.2.3.4')


class HelperTests(TestCase):

    def test_parse_id_list(self):
        self.assertEqual(parse_id_list('1, 2,x,3'), [1, 2, 3])
        self.assertEqual(parse_id_list(None), [])
        self.assertEqual(parse_id_list(['4', 5]), [4, 5])

    @override_settings(DEFAULT_TAX_RATE='10')
    def test_default_tax_rate_from_settings(self):
        self.assertEqual(get_default_tax_rate(), Decimal('10'))

    def test_default_tax_rate_from_setting_row(self):
        Setting.objects.create(key=TAX_RATE_SETTING_KEY, value='5.5')
        self.assertEqual(get_default_tax_rate(), Decimal('5.5'))


class AuthAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(access_level='broker_member')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': self.user.username, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_me_permissions(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(response.data['can_dispatch'])

    def test_unauthenticated(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ChangeLogAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_user(access_level='broker_admin')
        self.member = TestDataFactory.create_user(access_level='broker_member')
        self.client = AuthenticatedAPIClient()
        ChangeLog.objects.create(entity_type='company', entity_id='1', changed_by=self.admin,
                                 changed_by_name='admin', change_type='update')
        ChangeLog.objects.create(entity_type='driver', entity_id='2', changed_by=self.member,
                                 changed_by_name='member', change_type='create')

    def test_admin_sees_all(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/change-logs/')
        self.assertEqual(response.data['count'], 2)

    def test_member_sees_own(self):
        self.client.authenticate_user(self.member)
        response = self.client.get('/api/v1/change-logs/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['entity_type'], 'driver')

    def test_filter_by_entity(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/change-logs/', {'entity_type': 'company'})
        self.assertEqual(response.data['count'], 1)

    def test_member_cannot_read_others(self):
        other = ChangeLog.objects.get(entity_type='company')
        self.client.authenticate_user(self.member)
        response = self.client.get(f'/api/v1/change-logs/{other.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UserAdminAPITests(TestCase):
    """Test user field edits, status switching and the user audit trail"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.user = TestDataFactory.create_user(access_level='broker_member')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_update_allowed_fields(self):
        response = self.client.patch(f'/api/v1/users/{self.user.id}/fields/', {
            'fields': {'department': 'Dispatch', 'access_level': 'broker_admin'},
            'reason': 'Promotion',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['access_level'], 'broker_admin')
        log = ChangeLog.objects.get(entity_type='user', entity_id=str(self.user.id))
        self.assertEqual(log.reason, 'Promotion')
        self.assertEqual(log.diff['department'], {'old': '', 'new': 'Dispatch'})

    def test_reject_fields_outside_allow_list(self):
        response = self.client.patch(f'/api/v1/users/{self.user.id}/fields/', {
            'fields': {'username': 'renamed', 'is_superuser': True}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['fields'], ['is_superuser', 'username'])

    def test_duplicate_email(self):
        response = self.client.patch(f'/api/v1/users/{self.user.id}/fields/', {
            'fields': {'email': self.admin.email.upper()}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_lock_user_blocks_login(self):
        response = self.client.patch(f'/api/v1/users/{self.user.id}/status/', {
            'status': 'locked', 'reason': 'Too many failed logins'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'locked')
        self.assertFalse(response.data['is_active'])
        self.assertTrue(ChangeLog.objects.filter(
            entity_type='user', entity_id=str(self.user.id), change_type='status_change'
        ).exists())

        response = self.client.post('/api/v1/auth/login/', {
            'username': self.user.username, 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_status_via_fields_syncs_active_flag(self):
        self.client.patch(f'/api/v1/users/{self.user.id}/fields/', {'fields': {'status': 'inactive'}}, format='json')
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)

    def test_same_status(self):
        response = self.client.patch(f'/api/v1/users/{self.user.id}/status/', {'status': 'active'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('message', response.data)
        self.assertFalse(ChangeLog.objects.exists())

    def test_invalid_status(self):
        response = self.client.patch(f'/api/v1/users/{self.user.id}/status/', {'status': 'banned'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_change_logs(self):
        self.client.patch(f'/api/v1/users/{self.user.id}/status/', {'status': 'inactive'}, format='json')
        self.client.patch(f'/api/v1/users/{self.user.id}/status/', {'status': 'active'}, format='json')
        response = self.client.get(f'/api/v1/users/{self.user.id}/change-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_requires_staff(self):
        self.client.authenticate_user(self.user)
        response = self.client.patch(f'/api/v1/users/{self.admin.id}/status/', {'status': 'locked'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

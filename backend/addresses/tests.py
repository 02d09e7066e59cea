"""
Test suite for Addresses module
Tests: soft delete, change-log diffs, batch actions, frequent and recent lookups
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from backend.core.models import ChangeLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.addresses.models import Address
from backend.distance.models import DistanceCache


class AddressAPITests(TestCase):
    """Test Address API endpoints"""

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.user = TestDataFactory.create_user(company=self.company)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_defaults_to_user_company(self):
        data = {
            'name': 'Incheon Warehouse',
            'type': 'pickup',
            'road_address': 'Incheon Road 1',
            'jibun_address': 'Incheon 1-1',
            'metadata': {'lat': '37.45', 'lng': '126.70'},
        }
        response = self.client.post('/api/v1/addresses/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['company'], self.company.id)
        self.assertEqual(response.data['metadata']['lat'], 37.45)

    def test_invalid_metadata(self):
        data = {
            'name': 'Bad', 'type': 'pickup', 'road_address': 'r', 'jibun_address': 'j',
            'metadata': {'lat': 'north'},
        }
        response = self.client.post('/api/v1/addresses/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_soft_delete_hides_address(self):
        address = TestDataFactory.create_address()
        response = self.client.delete(f'/api/v1/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Address.objects.filter(pk=address.pk).exists())
        self.assertTrue(Address.all_objects.filter(pk=address.pk).exists())
        response = self.client.get(f'/api/v1/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_logs_metadata_diff(self):
        address = TestDataFactory.create_address(lat=37.1, lng=127.0)
        response = self.client.patch(f'/api/v1/addresses/{address.id}/', {
            'metadata': {'lat': 37.2, 'lng': 127.0}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = ChangeLog.objects.get(entity_type='address', entity_id=str(address.id), change_type='update')
        self.assertEqual(log.diff, {'metadata.lat': {'old': 37.1, 'new': 37.2}})

    def test_update_invalidates_distance_cache(self):
        pickup = TestDataFactory.create_address()
        delivery = TestDataFactory.create_address()
        row = DistanceCache.objects.create(
            pickup_address=pickup, delivery_address=delivery, distance_km=Decimal('12.50'), duration_min=20,
        )
        self.client.patch(f'/api/v1/addresses/{pickup.id}/', {'road_address': 'Moved Road 9'}, format='json')
        row.refresh_from_db()
        self.assertFalse(row.is_valid)

    def test_batch_partial_failure(self):
        address = TestDataFactory.create_address()
        response = self.client.post('/api/v1/addresses/batch/', {
            'ids': [address.id, 999999], 'action': 'set_frequent'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['processed'], 1)
        self.assertEqual(response.data['failed'], 1)
        address.refresh_from_db()
        self.assertTrue(address.is_frequent)

    def test_frequent_includes_both(self):
        Address.objects.create(name='P', type='pickup', road_address='r', jibun_address='j', is_frequent=True)
        Address.objects.create(name='B', type='both', road_address='r', jibun_address='j', is_frequent=True)
        Address.objects.create(name='D', type='delivery', road_address='r', jibun_address='j', is_frequent=True)
        response = self.client.get('/api/v1/addresses/frequent/', {'type': 'pickup'})
        self.assertEqual(sorted(a['name'] for a in response.data), ['B', 'P'])

    def test_recent_deduplicates(self):
        snapshot = {'road_address': 'Same Road 1', 'name': 'Dock'}
        for _ in range(3):
            order = TestDataFactory.create_order(company=self.company)
            order.pickup_snapshot = snapshot
            order.pickup_contact_name = 'Kim'
            order.save()
        response = self.client.get('/api/v1/addresses/recent/', {'type': 'pickup'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['road_address'], 'Same Road 1')

    def test_recent_requires_type(self):
        response = self.client.get('/api/v1/addresses/recent/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

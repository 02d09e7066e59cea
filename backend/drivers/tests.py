"""
Test suite for Drivers module
"""
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.models import ChangeLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.drivers.models import Driver


class DriverAPITests(TestCase):
    """Test Driver API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_driver(self):
        data = {
            'name': 'Choi',
            'phone_number': '010-5555-1234',
            'vehicle_number': ' 12GA3456 ',
            'vehicle_type': 'wing_body',
            'vehicle_weight': '11t',
        }
        response = self.client.post('/api/v1/drivers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['vehicle_number'], '12GA3456')

    def test_duplicate_vehicle_number(self):
        driver = TestDataFactory.create_driver()
        data = {
            'name': 'Other', 'phone_number': '010-0000-0000', 'vehicle_number': driver.vehicle_number,
            'vehicle_type': 'cargo', 'vehicle_weight': '1t',
        }
        response = self.client.post('/api/v1/drivers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_manufacture_year_range(self):
        driver = TestDataFactory.create_driver()
        response = self.client.patch(f'/api/v1/drivers/{driver.id}/', {'manufacture_year': 1950}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_vehicle_type(self):
        TestDataFactory.create_driver()
        Driver.objects.create(name='Box', phone_number='010-1', vehicle_number='99NA9999',
                              vehicle_type='box', vehicle_weight='1t')
        response = self.client.get('/api/v1/drivers/', {'vehicle_type': 'box'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Box')

    def test_deactivate_logs_status_change(self):
        driver = TestDataFactory.create_driver()
        response = self.client.patch(f'/api/v1/drivers/{driver.id}/', {
            'is_active': False, 'inactive_reason': 'Sold truck'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(ChangeLog.objects.filter(
            entity_type='driver', entity_id=str(driver.id), change_type='status_change'
        ).exists())

    def test_reactivate_clears_reason(self):
        driver = TestDataFactory.create_driver()
        driver.is_active = False
        driver.inactive_reason = 'Vacation'
        driver.save()
        response = self.client.patch(f'/api/v1/drivers/{driver.id}/fields/', {
            'fields': {'is_active': True}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inactive_reason'], '')

    def test_delete_dispatched_driver(self):
        driver = TestDataFactory.create_driver()
        order = TestDataFactory.create_order()
        TestDataFactory.create_dispatch(order, driver=driver)
        response = self.client.delete(f'/api/v1/drivers/{driver.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_notes(self):
        driver = TestDataFactory.create_driver()
        url = f'/api/v1/drivers/{driver.id}/notes/'
        response = self.client.post(url, {'content': 'Prefers night runs', 'date': timezone.localdate().isoformat()},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get(url)
        self.assertEqual(len(response.data), 1)
        note_id = response.data[0]['id']
        response = self.client.delete(f'{url}{note_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

"""
Test suite for Companies module
Tests: CRUD, allow-listed field edits, status switching, batch actions and warnings
"""
from django.test import TestCase
from rest_framework import status
from backend.core.models import ChangeLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.companies.models import Company, CompanyWarning


class CompanyAPITests(TestCase):
    """Test Company API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_company(self):
        data = {
            'name': 'Hanil Logistics',
            'business_number': '123-45-67890',
            'ceo_name': 'Park',
            'type': 'shipper',
        }
        response = self.client.post('/api/v1/companies/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'active')
        self.assertTrue(ChangeLog.objects.filter(entity_type='company', change_type='create').exists())

    def test_create_company_invalid_business_number(self):
        data = {'name': 'Bad', 'business_number': '12-34', 'ceo_name': 'Park', 'type': 'shipper'}
        response = self.client.post('/api/v1/companies/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('business_number', response.data)

    def test_list_filter_and_search(self):
        TestDataFactory.create_company(name='Alpha Freight', type='broker')
        TestDataFactory.create_company(name='Beta Foods', type='shipper')
        response = self.client.get('/api/v1/companies/', {'type': 'broker'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/companies/', {'search': 'beta'})
        self.assertEqual(response.data['results'][0]['name'], 'Beta Foods')

    def test_update_fields_rejects_unknown(self):
        company = TestDataFactory.create_company()
        response = self.client.patch(f'/api/v1/companies/{company.id}/fields/', {
            'fields': {'bank_account_number': '1234'}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['fields'], ['bank_account_number'])

    def test_update_fields_logs_diff(self):
        company = TestDataFactory.create_company(name='Old Name')
        response = self.client.patch(f'/api/v1/companies/{company.id}/fields/', {
            'fields': {'name': 'New Name'}, 'reason': 'rename'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = ChangeLog.objects.get(entity_type='company', entity_id=str(company.id), change_type='update')
        self.assertEqual(log.diff, {'name': {'old': 'Old Name', 'new': 'New Name'}})
        self.assertEqual(log.reason, 'rename')

    def test_status_switch(self):
        company = TestDataFactory.create_company()
        response = self.client.patch(f'/api/v1/companies/{company.id}/status/', {'status': 'inactive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        company.refresh_from_db()
        self.assertEqual(company.status, 'inactive')

    def test_status_switch_same_value(self):
        company = TestDataFactory.create_company()
        response = self.client.patch(f'/api/v1/companies/{company.id}/status/', {'status': 'active'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_referenced_company(self):
        """Companies with orders are protected"""
        company = TestDataFactory.create_company()
        TestDataFactory.create_order(company=company)
        response = self.client.delete(f'/api/v1/companies/{company.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Company.objects.filter(pk=company.pk).exists())

    def test_batch_deactivate(self):
        first = TestDataFactory.create_company()
        second = TestDataFactory.create_company()
        response = self.client.post('/api/v1/companies/batch/', {
            'ids': [first.id, second.id], 'action': 'deactivate'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Company.objects.filter(status='inactive').count(), 2)

    def test_batch_missing_ids(self):
        company = TestDataFactory.create_company()
        response = self.client.post('/api/v1/companies/batch/', {
            'ids': [company.id, 999999], 'action': 'delete'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Company.objects.filter(pk=company.pk).exists())


class CompanyWarningAPITests(TestCase):
    """Test company warning endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.company = TestDataFactory.create_company()

    def test_add_warning_appends_sort_order(self):
        url = f'/api/v1/companies/{self.company.id}/warnings/'
        self.client.post(url, {'text': 'Pays late', 'category': 'payment'}, format='json')
        response = self.client.post(url, {'text': 'Fragile cargo', 'category': 'cargo'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sort_order'], 1)

    def test_sort_warnings(self):
        first = CompanyWarning.objects.create(company=self.company, text='a', sort_order=0)
        second = CompanyWarning.objects.create(company=self.company, text='b', sort_order=1)
        response = self.client.post(f'/api/v1/companies/{self.company.id}/warnings/sort/', {
            'items': [{'id': first.id, 'sort_order': 1}, {'id': second.id, 'sort_order': 0}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([w['id'] for w in response.data], [second.id, first.id])

    def test_sort_foreign_warning(self):
        other = TestDataFactory.create_company()
        foreign = CompanyWarning.objects.create(company=other, text='x')
        response = self.client.post(f'/api/v1/companies/{self.company.id}/warnings/sort/', {
            'items': [{'id': foreign.id, 'sort_order': 0}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

"""
Test suite for Dashboard module
Tests: KPI periods and targets, status distribution, daily trends and range validation
"""
from datetime import date
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class DashboardTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.company = TestDataFactory.create_company()

    def _order(self, pickup_date, amount=None, flow_status='requested', company=None):
        order = TestDataFactory.create_order(company=company or self.company, pickup_date=pickup_date,
                                             flow_status=flow_status)
        if amount is not None:
            group = TestDataFactory.create_charge_group(order)
            TestDataFactory.create_charge_line(group, amount=Decimal(amount))
            TestDataFactory.create_charge_line(group, side='purchase', amount=Decimal('1000'))
        return order


class KpiTests(DashboardTestCase):
    """Test KPI endpoint"""

    def test_requires_company(self):
        response = self.client.get('/api/v1/dashboard/kpi/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_month_period(self):
        self._order(date(2026, 3, 2), amount='100000')
        self._order(date(2026, 3, 31), amount='50000')
        self._order(date(2026, 4, 1), amount='70000')
        self._order(date(2026, 3, 10), amount='90000', company=TestDataFactory.create_company())

        response = self.client.get('/api/v1/dashboard/kpi/', {'company_id': self.company.id, 'date': '2026-03-15'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_count'], 2)
        self.assertEqual(response.data['order_amount'], Decimal('150000.00'))
        self.assertEqual(response.data['order_average'], Decimal('75000'))
        self.assertEqual(response.data['weekly_target'], {'target': 100, 'current': 2, 'percentage': 2})
        self.assertEqual(response.data['monthly_target']['target'], 350)
        self.assertEqual(response.data['meta']['date_from'], '2026-03-01')
        self.assertEqual(response.data['meta']['date_to'], '2026-03-31')

    def test_no_orders(self):
        response = self.client.get('/api/v1/dashboard/kpi/', {'company_id': self.company.id, 'date': '2026-03-15'})
        self.assertEqual(response.data['order_count'], 0)
        self.assertEqual(response.data['order_average'], Decimal('0'))
        self.assertEqual(response.data['weekly_target']['percentage'], 0)

    def test_custom_period_needs_dates(self):
        response = self.client.get('/api/v1/dashboard/kpi/', {'company_id': self.company.id, 'period': 'custom'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_custom_period_by_delivery(self):
        TestDataFactory.create_order(company=self.company, pickup_date=date(2026, 2, 27),
                                     delivery_date=date(2026, 3, 2))
        response = self.client.get('/api/v1/dashboard/kpi/', {
            'company_id': self.company.id, 'period': 'custom', 'basis': 'delivery',
            'date_from': '2026-03-01', 'date_to': '2026-03-05',
        })
        self.assertEqual(response.data['order_count'], 1)

    def test_invalid_basis(self):
        response = self.client.get('/api/v1/dashboard/kpi/', {'company_id': self.company.id, 'basis': 'created'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StatusStatsTests(DashboardTestCase):

    def test_counts_every_status(self):
        self._order(date(2026, 3, 2))
        self._order(date(2026, 3, 3))
        self._order(date(2026, 3, 4), flow_status='completed')
        response = self.client.get('/api/v1/dashboard/status-stats/', {
            'date_from': '2026-03-01', 'date_to': '2026-03-31'
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_count'], 3)
        counts = {row['status']: row['count'] for row in response.data['by_status']}
        self.assertEqual(counts['requested'], 2)
        self.assertEqual(counts['completed'], 1)
        self.assertEqual(counts['in_transit'], 0)
        self.assertEqual(len(counts), 8)

    def test_shipper_scope(self):
        self._order(date(2026, 3, 2))
        self._order(date(2026, 3, 2), company=TestDataFactory.create_company())
        shipper = TestDataFactory.create_user(access_level='shipper_member', company=self.company)
        self.client.authenticate_user(shipper)
        response = self.client.get('/api/v1/dashboard/status-stats/', {
            'date_from': '2026-03-01', 'date_to': '2026-03-31'
        })
        self.assertEqual(response.data['total_count'], 1)


class TrendsTests(DashboardTestCase):

    def test_daily_points(self):
        self._order(date(2026, 3, 1), amount='100000')
        self._order(date(2026, 3, 1), amount='20000')
        self._order(date(2026, 3, 3), amount='50000')
        self._order(date(2026, 3, 4), amount='999999')
        response = self.client.get('/api/v1/dashboard/trends/', {'date_from': '2026-03-01', 'date_to': '2026-03-04'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        points = response.data['points']
        self.assertEqual([p['date'] for p in points], ['2026-03-01', '2026-03-02', '2026-03-03'])
        self.assertEqual([p['count'] for p in points], [2, 0, 1])
        self.assertEqual(points[0]['amount'], Decimal('120000.00'))
        self.assertEqual(points[1]['amount'], Decimal('0'))
        self.assertEqual(response.data['total_count'], 3)
        self.assertEqual(response.data['total_amount'], Decimal('170000.00'))

    def test_requires_dates(self):
        response = self.client.get('/api/v1/dashboard/trends/', {'date_from': '2026-03-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reversed_range(self):
        response = self.client.get('/api/v1/dashboard/trends/', {'date_from': '2026-03-05', 'date_to': '2026-03-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_range_too_long(self):
        response = self.client.get('/api/v1/dashboard/trends/', {'date_from': '2026-01-01', 'date_to': '2026-06-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

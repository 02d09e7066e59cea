"""
Test suite for Distance module
Tests: directions client parsing, distance cache, rate limiting and usage accounting
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import patch, MagicMock

import requests
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from backend.core.models import ChangeLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.distance.kakao_service import KakaoDirectionsError, get_directions
from backend.distance.models import ApiUsageLog, DistanceCache
from backend.distance.utils import get_cached_distance, usage_stats


def directions_response(distance=12340, duration=1800, result_code=0):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        'routes': [{
            'result_code': result_code,
            'result_msg': 'No route' if result_code else 'OK',
            'summary': {'distance': distance, 'duration': duration, 'fare': {'toll': 1500}},
        }]
    }
    return response


@override_settings(KAKAO_REST_API_KEY='test-key')
class KakaoServiceTests(TestCase):

    @patch('backend.distance.kakao_service.requests.get')
    def test_parses_summary(self, mock_get):
        mock_get.return_value = directions_response()
        result = get_directions({'lat': 37.5, 'lng': 127.0}, {'lat': 35.1, 'lng': 129.0})
        self.assertEqual(result['distance_km'], 12.34)
        self.assertEqual(result['duration_min'], 30)
        self.assertEqual(result['route_summary']['fare'], {'toll': 1500})
        _, kwargs = mock_get.call_args
        self.assertEqual(kwargs['params']['origin'], '127.0,37.5')
        self.assertEqual(kwargs['headers']['Authorization'], 'KakaoAK test-key')

    @patch('backend.distance.kakao_service.requests.get')
    def test_no_route(self, mock_get):
        mock_get.return_value = directions_response(result_code=104)
        with self.assertRaises(KakaoDirectionsError):
            get_directions({'lat': 37.5, 'lng': 127.0}, {'lat': 37.5, 'lng': 127.0})

    @override_settings(KAKAO_REST_API_KEY='')
    def test_missing_key(self):
        with self.assertRaises(KakaoDirectionsError):
            get_directions({'lat': 37.5, 'lng': 127.0}, {'lat': 35.1, 'lng': 129.0})


@override_settings(KAKAO_REST_API_KEY='test-key', DISTANCE_RATE_LIMIT=10)
class DistanceAPITests(TestCase):
    """Test distance calculation endpoint"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.pickup = TestDataFactory.create_address(lat=37.5665, lng=126.9780)
        self.delivery = TestDataFactory.create_address(lat=35.1796, lng=129.0756)

    def _calculate(self, **extra):
        data = {'pickup_address_id': self.pickup.id, 'delivery_address_id': self.delivery.id}
        data.update(extra)
        return self.client.post('/api/v1/distance/calculate/', data, format='json')

    @patch('backend.distance.kakao_service.requests.get')
    def test_api_then_cached(self, mock_get):
        mock_get.return_value = directions_response()
        response = self._calculate()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['method'], 'api')
        self.assertEqual(response.data['distance_km'], Decimal('12.34'))
        self.assertEqual(ApiUsageLog.objects.get().estimated_cost, Decimal('8.00'))

        response = self._calculate()
        self.assertEqual(response.data['method'], 'cached')
        self.assertEqual(response.data['hit_count'], 1)
        self.assertEqual(mock_get.call_count, 1)

    @patch('backend.distance.kakao_service.requests.get')
    def test_force_refresh(self, mock_get):
        mock_get.return_value = directions_response()
        self._calculate()
        response = self._calculate(force_refresh=True)
        self.assertEqual(response.data['method'], 'api')
        self.assertEqual(mock_get.call_count, 2)

    @patch('backend.distance.kakao_service.requests.get')
    def test_api_failure(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        response = self._calculate()
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        log = ApiUsageLog.objects.get()
        self.assertFalse(log.success)
        self.assertFalse(DistanceCache.objects.exists())

    def test_unknown_address(self):
        response = self._calculate(delivery_address_id=999999)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_missing_coordinates(self):
        no_location = TestDataFactory.create_address(lat=None, lng=None)
        response = self._calculate(delivery_address_id=no_location.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_coordinates_out_of_range(self):
        response = self._calculate(pickup_coordinates={'lat': 51.5, 'lng': -0.12})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(DISTANCE_RATE_LIMIT=2, DISTANCE_RATE_WINDOW=60)
    def test_rate_limit(self):
        DistanceCache.objects.create(pickup_address=self.pickup, delivery_address=self.delivery,
                                     distance_km=Decimal('10.00'), duration_min=15)
        self._calculate()
        self._calculate()
        response = self._calculate()
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response['Retry-After'], '60')
        self.assertEqual(ApiUsageLog.objects.filter(response_status=429).count(), 1)

    def test_invalidate_endpoint(self):
        DistanceCache.objects.create(pickup_address=self.pickup, delivery_address=self.delivery,
                                     distance_km=Decimal('10.00'), duration_min=15)
        response = self.client.post('/api/v1/distance/cache/invalidate/', {'address_ids': [self.delivery.id]},
                                    format='json')
        self.assertEqual(response.data['invalidated'], 1)
        self.assertFalse(DistanceCache.objects.filter(is_valid=True).exists())


class DistanceCacheTests(TestCase):

    def setUp(self):
        self.pickup = TestDataFactory.create_address()
        self.delivery = TestDataFactory.create_address()
        self.row = DistanceCache.objects.create(pickup_address=self.pickup, delivery_address=self.delivery,
                                                distance_km=Decimal('10.00'), duration_min=15)
        DistanceCache.objects.filter(pk=self.row.pk).update(created_at=timezone.now() - timedelta(minutes=5))
        self.row.refresh_from_db()

    def test_hit_increments_count(self):
        row = get_cached_distance(self.pickup.pk, self.delivery.pk, 'RECOMMEND')
        self.assertEqual(row.pk, self.row.pk)
        self.assertEqual(DistanceCache.objects.get(pk=self.row.pk).hit_count, 1)

    def test_other_priority_misses(self):
        self.assertIsNone(get_cached_distance(self.pickup.pk, self.delivery.pk, 'TIME'))

    def test_address_change_makes_row_stale(self):
        ChangeLog.objects.create(entity_type='address', entity_id=str(self.pickup.pk),
                                 changed_by_name='system', change_type='update')
        self.assertIsNone(get_cached_distance(self.pickup.pk, self.delivery.pk, 'RECOMMEND'))
        self.row.refresh_from_db()
        self.assertFalse(self.row.is_valid)


class UsageStatsTests(TestCase):

    def setUp(self):
        ApiUsageLog.objects.create(response_status=200, success=True, estimated_cost=Decimal('8.00'),
                                   response_time_ms=100)
        ApiUsageLog.objects.create(response_status=502, success=False, response_time_ms=300)

    def test_totals(self):
        today = timezone.localdate()
        stats = usage_stats(today, today)
        self.assertEqual(stats['total_calls'], 2)
        self.assertEqual(stats['successful_calls'], 1)
        self.assertEqual(stats['success_rate'], 50.0)
        self.assertEqual(stats['total_cost'], Decimal('8.00'))
        self.assertEqual(stats['avg_response_time_ms'], 200)
        self.assertEqual(stats['by_api_type'], {'directions': 2})

    def test_endpoint_rejects_reversed_range(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/distance/usage-stats/', {'date_from': '2026-02-01', 'date_to': '2026-01-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cleanup_command(self):
        ApiUsageLog.objects.update(created_at=timezone.now() - timedelta(days=120))
        out = StringIO()
        call_command('cleanup_api_usage', '--days', '90', stdout=out)
        self.assertIn('Deleted 2', out.getvalue())
        self.assertFalse(ApiUsageLog.objects.exists())

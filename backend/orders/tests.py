"""
Comprehensive test suite for Orders module
Tests: order registration with address snapshots, flow status, cancel, dispatch lifecycle and scoping
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.models import ChangeLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.orders.models import Order, OrderDispatch


class OrderAPITests(TestCase):
    """Test Order API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.company = TestDataFactory.create_company()
        self.pickup = TestDataFactory.create_address(name='Pickup Dock')
        self.delivery = TestDataFactory.create_address(name='Delivery Dock')

    def _order_data(self, **overrides):
        today = timezone.localdate()
        data = {
            'company': self.company.id,
            'cargo_name': 'Steel coils',
            'requested_vehicle_type': 'cargo',
            'requested_vehicle_weight': '11t',
            'pickup_address': self.pickup.id,
            'pickup_date': today.isoformat(),
            'delivery_address': self.delivery.id,
            'delivery_date': (today + timedelta(days=1)).isoformat(),
        }
        data.update(overrides)
        return data

    def test_create_order_snapshots_addresses(self):
        response = self.client.post('/api/v1/orders/', self._order_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['flow_status'], 'requested')
        self.assertEqual(response.data['pickup_snapshot']['road_address'], self.pickup.road_address)
        self.assertEqual(response.data['pickup_name'], 'Pickup Dock')
        self.assertEqual(response.data['contact_snapshot']['id'], self.user.id)

    def test_delivery_before_pickup(self):
        today = timezone.localdate()
        data = self._order_data(delivery_date=(today - timedelta(days=1)).isoformat())
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_date', response.data)

    def test_missing_address(self):
        data = self._order_data()
        del data['pickup_address']
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_change_status(self):
        order = TestDataFactory.create_order(company=self.company)
        response = self.client.post(f'/api/v1/orders/{order.id}/status/', {'flow_status': 'awaiting_dispatch'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.flow_status, 'awaiting_dispatch')
        self.assertTrue(ChangeLog.objects.filter(entity_type='order', change_type='status_change').exists())

    def test_invalid_status(self):
        order = TestDataFactory.create_order(company=self.company)
        response = self.client.post(f'/api/v1/orders/{order.id}/status/', {'flow_status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_twice(self):
        order = TestDataFactory.create_order(company=self.company)
        response = self.client.post(f'/api/v1/orders/{order.id}/cancel/', {'reason': 'customer'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_canceled'])
        response = self.client.post(f'/api/v1/orders/{order.id}/cancel/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_completed(self):
        order = TestDataFactory.create_order(company=self.company, flow_status='completed')
        response = self.client.post(f'/api/v1/orders/{order.id}/cancel/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_fields_on_canceled_order(self):
        order = TestDataFactory.create_order(company=self.company)
        order.is_canceled = True
        order.save()
        response = self.client.patch(f'/api/v1/orders/{order.id}/fields/', {'fields': {'memo': 'x'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_shipper_sees_own_company_only(self):
        TestDataFactory.create_order(company=self.company)
        TestDataFactory.create_order()
        shipper = TestDataFactory.create_user(access_level='shipper_member', company=self.company)
        self.client.authenticate_user(shipper)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.data['count'], 1)

    def test_delete_dispatched_order(self):
        order = TestDataFactory.create_order(company=self.company)
        TestDataFactory.create_dispatch(order)
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DispatchAPITests(TestCase):
    """Test dispatch endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order()
        self.broker = TestDataFactory.create_company(type='broker')
        self.driver = TestDataFactory.create_driver()

    def _dispatch_data(self):
        return {
            'broker_company': self.broker.id,
            'driver': self.driver.id,
            'vehicle_number': self.driver.vehicle_number,
            'vehicle_type': 'cargo',
            'vehicle_weight': '5t',
            'agreed_freight_cost': '250000',
        }

    def test_dispatch_order(self):
        response = self.client.post(f'/api/v1/orders/{self.order.id}/dispatch/', self._dispatch_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['driver_snapshot']['name'], self.driver.name)
        self.order.refresh_from_db()
        self.driver.refresh_from_db()
        self.assertEqual(self.order.flow_status, 'dispatched')
        self.assertIsNotNone(self.driver.last_dispatched_at)

    def test_dispatch_twice(self):
        self.client.post(f'/api/v1/orders/{self.order.id}/dispatch/', self._dispatch_data(), format='json')
        response = self.client.post(f'/api/v1/orders/{self.order.id}/dispatch/', self._dispatch_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_dispatch_inactive_driver(self):
        self.driver.is_active = False
        self.driver.save()
        response = self.client.post(f'/api/v1/orders/{self.order.id}/dispatch/', self._dispatch_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dispatch_requires_broker(self):
        data = self._dispatch_data()
        data['broker_company'] = TestDataFactory.create_company(type='shipper').id
        response = self.client.post(f'/api/v1/orders/{self.order.id}/dispatch/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_withdraw_dispatch(self):
        TestDataFactory.create_dispatch(self.order, driver=self.driver)
        response = self.client.delete(f'/api/v1/orders/{self.order.id}/dispatch/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.order.refresh_from_db()
        self.assertEqual(self.order.flow_status, 'awaiting_dispatch')
        self.assertFalse(OrderDispatch.objects.filter(order=self.order).exists())

    def test_broker_status_mirrors_to_order(self):
        dispatch = TestDataFactory.create_dispatch(self.order, driver=self.driver)
        response = self.client.patch(f'/api/v1/dispatches/{dispatch.id}/fields/', {
            'fields': {'broker_flow_status': 'in_transit'}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Order.objects.get(pk=self.order.pk).flow_status, 'in_transit')

    def test_close_dispatch(self):
        dispatch = TestDataFactory.create_dispatch(self.order, driver=self.driver)
        response = self.client.post(f'/api/v1/dispatches/{dispatch.id}/close/', format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_closed'])
        response = self.client.patch(f'/api/v1/dispatches/{dispatch.id}/fields/', {
            'fields': {'broker_memo': 'late'}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrderBatchTests(TestCase):
    """Test batch cancel, status change, delete and dry-run validation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.company = TestDataFactory.create_company()
        self.first = TestDataFactory.create_order(company=self.company)
        self.second = TestDataFactory.create_order(company=self.company)

    def test_batch_cancel_reports_failures(self):
        completed = TestDataFactory.create_order(company=self.company, flow_status='completed')
        response = self.client.post('/api/v1/orders/batch/', {
            'action': 'cancel', 'ids': [self.first.id, completed.id, 999999], 'reason': 'Customer withdrew'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['processed'], 1)
        self.assertEqual(response.data['failed'], 2)
        self.assertEqual({e['id'] for e in response.data['errors']}, {completed.id, 999999})
        self.assertTrue(Order.objects.get(pk=self.first.pk).is_canceled)
        self.assertFalse(Order.objects.get(pk=completed.pk).is_canceled)
        log = ChangeLog.objects.get(entity_type='order', entity_id=str(self.first.id), change_type='cancel')
        self.assertEqual(log.reason, 'Customer withdrew')

    def test_batch_update_status(self):
        dispatch = TestDataFactory.create_dispatch(self.second)
        response = self.client.post('/api/v1/orders/batch/', {
            'action': 'update_status', 'ids': [self.first.id, self.second.id], 'flow_status': 'in_transit'
        }, format='json')
        self.assertEqual(response.data['processed'], 2)
        self.assertEqual(Order.objects.filter(flow_status='in_transit').count(), 2)
        dispatch.refresh_from_db()
        self.assertEqual(dispatch.broker_flow_status, 'in_transit')
        self.assertEqual(ChangeLog.objects.filter(entity_type='order', change_type='status_change').count(), 2)

    def test_batch_update_status_needs_valid_status(self):
        response = self.client.post('/api/v1/orders/batch/', {
            'action': 'update_status', 'ids': [self.first.id]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_batch_delete_skips_dispatched(self):
        TestDataFactory.create_dispatch(self.second)
        response = self.client.post('/api/v1/orders/batch/', {
            'action': 'delete', 'ids': [self.first.id, self.second.id]
        }, format='json')
        self.assertEqual(response.data['processed'], 1)
        self.assertEqual(response.data['errors'][0]['id'], self.second.id)
        self.assertFalse(Order.objects.filter(pk=self.first.pk).exists())
        self.assertTrue(Order.objects.filter(pk=self.second.pk).exists())

    def test_batch_respects_shipper_scope(self):
        other = TestDataFactory.create_order()
        shipper = TestDataFactory.create_user(access_level='shipper_member', company=self.company)
        self.client.authenticate_user(shipper)
        response = self.client.post('/api/v1/orders/batch/', {
            'action': 'cancel', 'ids': [self.first.id, other.id]
        }, format='json')
        self.assertEqual(response.data['processed'], 1)
        self.assertFalse(Order.objects.get(pk=other.pk).is_canceled)

    def test_batch_invalid_action(self):
        response = self.client.post('/api/v1/orders/batch/', {'action': 'archive', 'ids': [self.first.id]},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_validate_does_not_save(self):
        today = timezone.localdate()
        data = {
            'company': self.company.id,
            'cargo_name': 'Pallets',
            'requested_vehicle_type': 'cargo',
            'requested_vehicle_weight': '5t',
            'pickup_address': TestDataFactory.create_address().id,
            'pickup_date': today.isoformat(),
            'delivery_address': TestDataFactory.create_address().id,
            'delivery_date': today.isoformat(),
        }
        count = Order.objects.count()
        response = self.client.post('/api/v1/orders/validate/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['valid'])
        self.assertEqual(Order.objects.count(), count)

        data['delivery_date'] = (today - timedelta(days=1)).isoformat()
        response = self.client.post('/api/v1/orders/validate/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_date', response.data)

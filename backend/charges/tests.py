"""
Comprehensive test suite for Charges module
Tests: charge lines, bundle total calculation, settlement creation, bundle lifecycle and adjustments
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from backend.core.models import ChangeLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.charges.models import (
    ChargeLine, OrderSale, OrderPurchase, SalesBundle, PurchaseBundle, SalesBundleAdjustment, SalesBundleItem,
    SalesItemAdjustment, quantize,
)
from backend.charges.utils import (
    SALES, SettlementError, compute_bundle_totals, compute_line_tax, create_bundle, delete_bundle,
)


class ChargeMathTests(TestCase):
    """Test rounding and bundle total calculation"""

    def test_quantize_half_up(self):
        self.assertEqual(quantize(Decimal('1.005')), Decimal('1.01'))
        self.assertEqual(quantize(Decimal('1.004')), Decimal('1.00'))

    def test_line_tax(self):
        self.assertEqual(compute_line_tax(Decimal('333.35'), Decimal('10')), Decimal('33.34'))

    def test_charge_line_save_computes_tax(self):
        order = TestDataFactory.create_order()
        group = TestDataFactory.create_charge_group(order)
        line = TestDataFactory.create_charge_line(group, amount=Decimal('12345.00'), tax_rate=Decimal('10.00'))
        self.assertEqual(line.tax_amount, Decimal('1234.50'))

    def test_bundle_totals(self):
        totals = compute_bundle_totals(
            [{'base_amount': Decimal('100000'), 'tax_amount': Decimal('10000')},
             {'base_amount': Decimal('50000')}],
            bundle_adjustments=[{'type': 'discount', 'amount': Decimal('5000')}],
            item_adjustments=[{'type': 'surcharge', 'amount': Decimal('2000'), 'tax_amount': Decimal('200')}],
            tax_rate=Decimal('10'),
        )
        self.assertEqual(totals['base_amount'], Decimal('150000.00'))
        self.assertEqual(totals['base_tax_amount'], Decimal('15000.00'))
        self.assertEqual(totals['item_extra_amount'], Decimal('2000.00'))
        self.assertEqual(totals['item_extra_amount_tax'], Decimal('200.00'))
        self.assertEqual(totals['bundle_extra_amount'], Decimal('-5000.00'))
        self.assertEqual(totals['bundle_extra_amount_tax'], Decimal('-500.00'))
        self.assertEqual(totals['total_amount'], Decimal('147000.00'))
        self.assertEqual(totals['total_tax_amount'], Decimal('14700.00'))
        self.assertEqual(totals['total_amount_with_tax'], Decimal('161700.00'))

    def test_bundle_totals_empty(self):
        totals = compute_bundle_totals([], tax_rate=Decimal('10'))
        self.assertEqual(totals['total_amount_with_tax'], Decimal('0.00'))


class ChargeGroupAPITests(TestCase):
    """Test charge group and line endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order()

    def test_create_group_with_lines(self):
        response = self.client.post('/api/v1/charges/groups/', {
            'order': self.order.id,
            'reason': 'base_freight',
            'lines': [
                {'side': 'sales', 'amount': '300000'},
                {'side': 'purchase', 'amount': '250000', 'tax_rate': '0'},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['lines']), 2)
        self.assertEqual(response.data['sales_total'], '300000.00')
        sales_line = ChargeLine.objects.get(side='sales')
        self.assertEqual(sales_line.tax_amount, Decimal('30000.00'))
        self.assertTrue(ChangeLog.objects.filter(
            entity_type='order', entity_id=str(self.order.id), change_type='update_price_sales'
        ).exists())

    def test_group_list_requires_order(self):
        response = self.client.get('/api/v1/charges/groups/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dispatch_of_other_order(self):
        other_dispatch = TestDataFactory.create_dispatch(TestDataFactory.create_order())
        response = self.client.post('/api/v1/charges/groups/', {
            'order': self.order.id, 'dispatch': other_dispatch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_locked_group_rejects_lines(self):
        group = TestDataFactory.create_charge_group(self.order, is_locked=True)
        response = self.client.post(f'/api/v1/charges/groups/{group.id}/lines/', {
            'side': 'sales', 'amount': '1000'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_locked_group_can_be_unlocked(self):
        group = TestDataFactory.create_charge_group(self.order, is_locked=True)
        response = self.client.patch(f'/api/v1/charges/groups/{group.id}/', {'is_locked': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_locked'])

    def test_update_line_logs_purchase_price(self):
        group = TestDataFactory.create_charge_group(self.order)
        line = TestDataFactory.create_charge_line(group, side='purchase', amount=Decimal('1000'))
        response = self.client.patch(f'/api/v1/charges/lines/{line.id}/', {'amount': '2000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tax_amount'], '200.00')
        log = ChangeLog.objects.get(change_type='update_price_purchase')
        self.assertIn('amount', log.diff)

    def test_invalid_tax_rate(self):
        group = TestDataFactory.create_charge_group(self.order)
        response = self.client.post(f'/api/v1/charges/groups/{group.id}/lines/', {
            'side': 'sales', 'amount': '1000', 'tax_rate': '150'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SettlementAPITests(TestCase):
    """Test settlement creation, summary and waiting lists"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.shipper = TestDataFactory.create_company()
        self.carrier = TestDataFactory.create_company(type='carrier')
        self.driver = TestDataFactory.create_driver(company=self.carrier)
        self.order = TestDataFactory.create_order(company=self.shipper)
        self.dispatch = TestDataFactory.create_dispatch(self.order, driver=self.driver)
        group = TestDataFactory.create_charge_group(self.order, dispatch=self.dispatch)
        TestDataFactory.create_charge_line(group, side='sales', amount=Decimal('100000'))
        TestDataFactory.create_charge_line(group, side='purchase', amount=Decimal('80000'))

    def test_create_settlement(self):
        response = self.client.post('/api/v1/charges/settlement/', {'order': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sale']['total_amount'], '110000.00')
        self.assertEqual(response.data['purchase']['total_amount'], '88000.00')
        self.assertEqual(response.data['purchase']['driver'], self.driver.id)
        self.assertEqual(response.data['purchase']['company'], self.carrier.id)
        self.assertTrue(response.data['sale']['invoice_number'].startswith('SAL-'))
        self.assertEqual(response.data['sale']['financial_snapshot']['profit'], '20000.00')

    def test_create_settlement_twice(self):
        self.client.post('/api/v1/charges/settlement/', {'order': self.order.id}, format='json')
        response = self.client.post('/api/v1/charges/settlement/', {'order': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_settlement_without_dispatch(self):
        order = TestDataFactory.create_order()
        response = self.client.post('/api/v1/charges/settlement/', {'order': order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sales_summary(self):
        TestDataFactory.create_order_sale(self.order, subtotal=Decimal('100000'))
        TestDataFactory.create_order_purchase(self.order, driver=self.driver, subtotal=Decimal('80000'))
        response = self.client.get('/api/v1/charges/sales/summary/', {'order_ids': str(self.order.id)})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 1)
        self.assertEqual(response.data['total_charge_amount'], Decimal('110000.00'))
        self.assertEqual(response.data['total_dispatch_amount'], Decimal('88000.00'))
        self.assertEqual(response.data['total_profit_amount'], Decimal('22000.00'))
        self.assertEqual(response.data['companies'][0]['company_id'], self.shipper.id)

    def test_sales_summary_requires_ids(self):
        response = self.client.get('/api/v1/charges/sales/summary/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_waiting_needs_closed_completed_order(self):
        TestDataFactory.create_order_sale(self.order)
        response = self.client.get('/api/v1/charges/sales/waiting/')
        self.assertEqual(response.data['count'], 0)

        self.order.flow_status = 'completed'
        self.order.save()
        self.dispatch.is_closed = True
        self.dispatch.save()
        response = self.client.get('/api/v1/charges/sales/waiting/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['page_size'], 10)

    def test_paid_sale_only_status_changes(self):
        sale = TestDataFactory.create_order_sale(self.order, status='paid')
        response = self.client.patch(f'/api/v1/charges/sales/{sale.id}/', {'memo': 'late'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/charges/sales/{sale.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_purchase_requires_counterparty(self):
        response = self.client.post('/api/v1/charges/purchases/', {
            'order': self.order.id, 'subtotal_amount': '1000', 'tax_amount': '100'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class BundleTests(TestCase):
    """Test bundle creation, status sync, deletion and adjustments"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.company = TestDataFactory.create_company()
        self.first = TestDataFactory.create_order_sale(
            TestDataFactory.create_order(company=self.company), subtotal=Decimal('100000'))
        self.second = TestDataFactory.create_order_sale(
            TestDataFactory.create_order(company=self.company), subtotal=Decimal('50000'))

    def _create(self, **extra):
        data = {
            'company': self.company.id,
            'items': [{'id': self.first.id}, {'id': self.second.id}],
        }
        data.update(extra)
        return self.client.post('/api/v1/charges/sales-bundles/', data, format='json')

    def test_create_sales_bundle(self):
        response = self._create(adjustments=[{'type': 'discount', 'amount': '1000', 'description': 'volume'}])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['total_amount'], '149000.00')
        self.assertEqual(response.data['total_tax_amount'], '14900.00')
        self.assertEqual(response.data['total_amount_with_tax'], '163900.00')
        self.assertEqual(response.data['order_count'], 2)
        self.assertTrue(response.data['invoice_no'].startswith('SB-'))
        self.assertEqual(response.data['company_snapshot']['name'], self.company.name)
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'issued')
        self.assertIsNotNone(self.first.issue_date)

    def test_item_override_and_item_adjustment(self):
        response = self._create(items=[{
            'id': self.first.id,
            'base_amount': '90000',
            'adjustments': [{'type': 'surcharge', 'amount': '5000', 'tax_amount': '0'}],
        }])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], '95000.00')
        self.assertEqual(response.data['total_tax_amount'], '9000.00')
        self.assertEqual(response.data['item_extra_amount'], '5000.00')

    def test_row_of_other_company(self):
        other = TestDataFactory.create_order_sale(TestDataFactory.create_order())
        response = self._create(items=[{'id': other.id}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(SalesBundle.objects.count(), 0)

    def test_row_already_issued(self):
        self.first.status = 'issued'
        self.first.save()
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.second.refresh_from_db()
        self.assertEqual(self.second.status, 'draft')

    def test_missing_row(self):
        response = self._create(items=[{'id': 999999}])
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_duplicate_rows(self):
        with self.assertRaises(SettlementError):
            create_bundle(SALES, {'company': self.company}, [{'id': self.first.id}, {'id': self.first.id}])

    def test_paid_status_flows_to_rows(self):
        bundle_id = self._create().data['id']
        response = self.client.patch(f'/api/v1/charges/sales-bundles/{bundle_id}/', {
            'status': 'paid', 'paid_date': '2026-01-31'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'paid')
        self.assertEqual(str(self.first.payment_date), '2026-01-31')

    def test_paid_bundle_is_frozen(self):
        bundle_id = self._create().data['id']
        SalesBundle.objects.filter(pk=bundle_id).update(status='paid')
        response = self.client.patch(f'/api/v1/charges/sales-bundles/{bundle_id}/', {
            'settlement_memo': 'changed'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/charges/sales-bundles/{bundle_id}/adjustments/', {
            'type': 'surcharge', 'amount': '100'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/charges/sales-bundles/{bundle_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_rejects_unknown_fields(self):
        bundle_id = self._create().data['id']
        response = self.client.patch(f'/api/v1/charges/sales-bundles/{bundle_id}/', {
            'total_amount': '1'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_returns_rows_to_draft(self):
        bundle = create_bundle(SALES, {'company': self.company}, [{'id': self.first.id}], user=self.user)
        line_ids = delete_bundle(SALES, bundle)
        self.assertEqual(line_ids, [self.first.id])
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'draft')
        self.assertIsNone(self.first.issue_date)
        self.assertFalse(SalesBundle.objects.exists())

    def test_requires_items(self):
        response = self._create(items=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SalesBundle.objects.exists())

    def test_bundled_row_status_follows_bundle(self):
        self._create()
        response = self.client.patch(f'/api/v1/charges/sales/{self.first.id}/', {'status': 'draft'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'issued')

    def test_redrafted_row_cannot_be_bundled_again(self):
        self._create()
        OrderSale.objects.filter(pk=self.first.pk).update(status='draft')
        response = self._create(items=[{'id': self.first.id}])
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)
        self.assertEqual(SalesBundle.objects.count(), 1)

    def test_create_with_paid_status(self):
        response = self._create(status='paid', paid_date='2026-02-10')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'paid')
        self.assertEqual(str(self.first.payment_date), '2026-02-10')

    def test_back_to_draft_reissues_rows(self):
        bundle_id = self._create().data['id']
        self.client.patch(f'/api/v1/charges/sales-bundles/{bundle_id}/', {'status': 'canceled'}, format='json')
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'canceled')
        response = self.client.patch(f'/api/v1/charges/sales-bundles/{bundle_id}/', {'status': 'draft'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'issued')

    def test_delete_removes_items_and_adjustments(self):
        bundle = create_bundle(
            SALES, {'company': self.company},
            [{'id': self.first.id, 'adjustments': [{'type': 'surcharge', 'amount': Decimal('500')}]}],
            [{'type': 'discount', 'amount': Decimal('1000')}],
            user=self.user,
        )
        response = self.client.delete(f'/api/v1/charges/sales-bundles/{bundle.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SalesBundleItem.objects.exists())
        self.assertFalse(SalesBundleAdjustment.objects.exists())
        self.assertFalse(SalesItemAdjustment.objects.exists())
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'draft')

    def test_adjustment_recalculates_totals(self):
        bundle_id = self._create().data['id']
        response = self.client.post(f'/api/v1/charges/sales-bundles/{bundle_id}/adjustments/', {
            'type': 'surcharge', 'amount': '2000'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        bundle = SalesBundle.objects.get(pk=bundle_id)
        self.assertEqual(bundle.total_amount, Decimal('152000.00'))
        self.assertEqual(bundle.bundle_extra_amount, Decimal('2000.00'))

        adjustment_id = response.data['id']
        self.client.delete(f'/api/v1/charges/sales-bundles/{bundle_id}/adjustments/{adjustment_id}/')
        bundle.refresh_from_db()
        self.assertEqual(bundle.total_amount, Decimal('150000.00'))

    def test_item_adjustment_endpoint(self):
        bundle = create_bundle(SALES, {'company': self.company}, [{'id': self.first.id}], user=self.user)
        item = bundle.items.get()
        response = self.client.post(f'/api/v1/charges/sales-bundles/items/{item.id}/adjustments/', {
            'type': 'discount', 'amount': '3000', 'tax_amount': '300'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        bundle.refresh_from_db()
        self.assertEqual(bundle.item_extra_amount, Decimal('-3000.00'))
        self.assertEqual(bundle.total_amount_with_tax, Decimal('106700.00'))

    def test_order_list(self):
        bundle_id = self._create().data['id']
        response = self.client.get(f'/api/v1/charges/sales-bundles/{bundle_id}/order-list/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['results'][0]['line_id'], self.first.id)


class PurchaseBundleTests(TestCase):
    """Test purchase bundles paid to drivers or carrier companies"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.driver = TestDataFactory.create_driver()
        self.purchase = TestDataFactory.create_order_purchase(
            TestDataFactory.create_order(), driver=self.driver, subtotal=Decimal('80000'))

    def test_create_driver_bundle(self):
        response = self.client.post('/api/v1/charges/purchase-bundles/', {
            'driver': self.driver.id,
            'items': [{'id': self.purchase.id}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['counterparty_snapshot']['type'], 'driver')
        self.assertEqual(response.data['total_amount_with_tax'], '88000.00')
        self.assertTrue(response.data['payment_no'].startswith('PB-'))
        self.assertEqual(OrderPurchase.objects.get(pk=self.purchase.pk).status, 'issued')

    def test_both_counterparties(self):
        company = TestDataFactory.create_company(type='carrier')
        response = self.client.post('/api/v1/charges/purchase-bundles/', {
            'driver': self.driver.id,
            'company': company.id,
            'items': [{'id': self.purchase.id}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(PurchaseBundle.objects.count(), 0)

    def test_canceled_bundle_cancels_rows(self):
        bundle_id = self.client.post('/api/v1/charges/purchase-bundles/', {
            'driver': self.driver.id,
            'items': [{'id': self.purchase.id}],
        }, format='json').data['id']
        response = self.client.patch(f'/api/v1/charges/purchase-bundles/{bundle_id}/', {
            'status': 'canceled'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(OrderPurchase.objects.get(pk=self.purchase.pk).status, 'canceled')
        self.assertFalse(OrderSale.objects.exists())

"""
Utility functions for charges, settlement and bundle aggregation
"""
import logging
import uuid
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from backend.core.utils import get_default_tax_rate
from .models import (
    quantize, ChargeLine, OrderSale, OrderPurchase,
    SalesBundle, SalesBundleItem, SalesBundleAdjustment, SalesItemAdjustment,
    PurchaseBundle, PurchaseBundleItem, PurchaseBundleAdjustment, PurchaseItemAdjustment,
)

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
HUNDRED = Decimal('100')


class SettlementError(ValueError):
    """Business rule violation while settling or bundling; carries the HTTP status to return"""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def generate_document_number(prefix, model, field):
    """Generate a unique PREFIX-YYYYMMDD-XXXXXXXX number for a settlement document"""
    timestamp = timezone.now().strftime('%Y%m%d')
    number = f"{prefix}-{timestamp}-{str(uuid.uuid4())[:8].upper()}"

    # Ensure uniqueness
    while model.objects.filter(**{field: number}).exists():
        number = f"{prefix}-{timestamp}-{str(uuid.uuid4())[:8].upper()}"
    return number


def compute_line_tax(amount, tax_rate):
    return quantize(Decimal(amount) * Decimal(tax_rate) / HUNDRED)


def _adjustment_sign(adjustment_type):
    return Decimal('-1') if adjustment_type == 'discount' else Decimal('1')


def _sum_adjustments(adjustments, tax_rate):
    amount = ZERO
    tax = ZERO
    for adjustment in adjustments:
        sign = _adjustment_sign(adjustment['type'])
        value = Decimal(adjustment['amount'])
        explicit_tax = adjustment.get('tax_amount')
        adjustment_tax = Decimal(explicit_tax) if explicit_tax is not None else compute_line_tax(value, tax_rate)
        amount += sign * value
        tax += sign * adjustment_tax
    return quantize(amount), quantize(tax)


def compute_bundle_totals(items, bundle_adjustments=(), item_adjustments=(), tax_rate=None):
    """
    Compute bundle totals.

    Args:
        items: dicts with 'base_amount' and optional 'tax_amount'
        bundle_adjustments / item_adjustments: dicts with 'type' (discount or
            surcharge), a positive 'amount' and optional 'tax_amount'
        tax_rate: percentage used where no explicit tax amount is given

    Discounts subtract, surcharges add. Every amount is rounded half-up to 0.01.
    """
    if tax_rate is None:
        tax_rate = get_default_tax_rate()

    base_amount = ZERO
    base_tax = ZERO
    for item in items:
        base = Decimal(item['base_amount'])
        explicit_tax = item.get('tax_amount')
        base_amount += base
        base_tax += Decimal(explicit_tax) if explicit_tax is not None else compute_line_tax(base, tax_rate)

    item_extra_amount, item_extra_tax = _sum_adjustments(item_adjustments, tax_rate)
    bundle_extra_amount, bundle_extra_tax = _sum_adjustments(bundle_adjustments, tax_rate)

    total_amount = quantize(base_amount + item_extra_amount + bundle_extra_amount)
    total_tax_amount = quantize(base_tax + item_extra_tax + bundle_extra_tax)
    return {
        'base_amount': quantize(base_amount),
        'base_tax_amount': quantize(base_tax),
        'item_extra_amount': item_extra_amount,
        'item_extra_amount_tax': item_extra_tax,
        'bundle_extra_amount': bundle_extra_amount,
        'bundle_extra_amount_tax': bundle_extra_tax,
        'total_amount': total_amount,
        'total_tax_amount': total_tax_amount,
        'total_amount_with_tax': quantize(total_amount + total_tax_amount),
    }


class BundleConfig:
    """Models and field names that differ between sales and purchase bundles"""

    def __init__(self, kind, bundle_model, item_model, bundle_adjustment_model, item_adjustment_model,
                 line_model, line_field, number_field, number_prefix, snapshot_field, counterparty_fields):
        self.kind = kind
        self.bundle_model = bundle_model
        self.item_model = item_model
        self.bundle_adjustment_model = bundle_adjustment_model
        self.item_adjustment_model = item_adjustment_model
        self.line_model = line_model
        self.line_field = line_field
        self.number_field = number_field
        self.number_prefix = number_prefix
        self.snapshot_field = snapshot_field
        self.counterparty_fields = counterparty_fields

    def counterparty(self, data):
        """Return (field, instance) for the single counterparty set in data"""
        for field in self.counterparty_fields:
            value = data.get(field)
            if value is not None:
                return field, value
        return None, None

    def line_belongs_to(self, line, field, counterparty):
        return getattr(line, f'{field}_id') == counterparty.pk


SALES = BundleConfig(
    kind='sales',
    bundle_model=SalesBundle,
    item_model=SalesBundleItem,
    bundle_adjustment_model=SalesBundleAdjustment,
    item_adjustment_model=SalesItemAdjustment,
    line_model=OrderSale,
    line_field='order_sale',
    number_field='invoice_no',
    number_prefix='SB',
    snapshot_field='company_snapshot',
    counterparty_fields=('company',),
)

PURCHASE = BundleConfig(
    kind='purchase',
    bundle_model=PurchaseBundle,
    item_model=PurchaseBundleItem,
    bundle_adjustment_model=PurchaseBundleAdjustment,
    item_adjustment_model=PurchaseItemAdjustment,
    line_model=OrderPurchase,
    line_field='order_purchase',
    number_field='payment_no',
    number_prefix='PB',
    snapshot_field='counterparty_snapshot',
    counterparty_fields=('company', 'driver'),
)

BUNDLE_CONFIGS = {'sales': SALES, 'purchase': PURCHASE}


def counterparty_snapshot(field, counterparty):
    if field == 'company':
        return {
            'type': 'company',
            'id': counterparty.pk,
            'name': counterparty.name,
            'business_number': counterparty.business_number,
            'ceo_name': counterparty.ceo_name,
        }
    return {
        'type': 'driver',
        'id': counterparty.pk,
        'name': counterparty.name,
        'phone_number': counterparty.phone_number,
        'vehicle_number': counterparty.vehicle_number,
        'business_number': counterparty.business_number,
    }


def manager_snapshot(user):
    if user is None:
        return {}
    return {
        'id': user.pk,
        'name': user.display_name,
        'email': user.email,
        'phone': user.phone or '',
    }


def _adjustment_values(adjustment, tax_rate):
    explicit_tax = adjustment.get('tax_amount')
    amount = quantize(adjustment['amount'])
    return {
        'type': adjustment['type'],
        'description': adjustment.get('description', ''),
        'amount': amount,
        'tax_amount': quantize(explicit_tax) if explicit_tax is not None else compute_line_tax(amount, tax_rate),
    }


def create_bundle(config, bundle_data, items, adjustments=None, user=None):
    """
    Group draft order sales (or purchases) of one counterparty into a bundle.

    items: [{'id', 'base_amount'?, 'tax_amount'?, 'adjustments'?: [...]}]
    adjustments: bundle-level adjustments

    Items, adjustments and the status change of the referenced rows to
    'issued' are written in one transaction.
    """
    adjustments = adjustments or []
    if not items:
        raise SettlementError('At least one item is required')

    line_ids = [item['id'] for item in items]
    if len(set(line_ids)) != len(line_ids):
        raise SettlementError('The same settlement row cannot be bundled twice')

    field, counterparty = config.counterparty(bundle_data)
    if counterparty is None:
        raise SettlementError(f'One of {", ".join(config.counterparty_fields)} is required')

    tax_rate = get_default_tax_rate()

    with transaction.atomic():
        lines = {
            line.pk: line
            for line in config.line_model.objects.select_for_update().filter(pk__in=line_ids)
        }
        missing = [line_id for line_id in line_ids if line_id not in lines]
        if missing:
            raise SettlementError(f'Settlement rows not found: {missing}', status_code=404)

        bundled = set(
            config.item_model.objects.filter(**{f'{config.line_field}_id__in': line_ids})
            .values_list(f'{config.line_field}_id', flat=True)
        )

        for line in lines.values():
            if not config.line_belongs_to(line, field, counterparty):
                raise SettlementError(f'{line.invoice_number} does not belong to the selected {field}')
            if line.pk in bundled:
                raise SettlementError(f'{line.invoice_number} is already in a bundle', status_code=409)
            if line.status != 'draft':
                raise SettlementError(f'{line.invoice_number} is already {line.status}')

        prepared = []
        for item in items:
            line = lines[item['id']]
            base_amount = item.get('base_amount')
            tax_amount = item.get('tax_amount')
            if base_amount is None:
                base_amount = line.subtotal_amount
                if tax_amount is None:
                    tax_amount = line.tax_amount
            base_amount = quantize(base_amount)
            prepared.append({
                'line': line,
                'base_amount': base_amount,
                'tax_amount': quantize(tax_amount) if tax_amount is not None else compute_line_tax(base_amount, tax_rate),
                'adjustments': [_adjustment_values(adj, tax_rate) for adj in item.get('adjustments') or []],
            })
        bundle_adjustments = [_adjustment_values(adj, tax_rate) for adj in adjustments]

        totals = compute_bundle_totals(
            prepared,
            bundle_adjustments,
            [adj for entry in prepared for adj in entry['adjustments']],
            tax_rate,
        )

        bundle = config.bundle_model(**bundle_data)
        if not getattr(bundle, config.number_field):
            setattr(bundle, config.number_field,
                    generate_document_number(config.number_prefix, config.bundle_model, config.number_field))
        setattr(bundle, config.snapshot_field, counterparty_snapshot(field, counterparty))
        bundle.manager_snapshot = manager_snapshot(bundle.manager)
        bundle.created_by = user
        bundle.updated_by = user
        _apply_totals(bundle, totals)
        bundle.order_count = len({entry['line'].order_id for entry in prepared})
        bundle.save()

        for entry in prepared:
            item = config.item_model.objects.create(
                bundle=bundle,
                base_amount=entry['base_amount'],
                tax_amount=entry['tax_amount'],
                **{config.line_field: entry['line']},
            )
            for adj in entry['adjustments']:
                config.item_adjustment_model.objects.create(item=item, created_by=user, **adj)

        for adj in bundle_adjustments:
            config.bundle_adjustment_model.objects.create(bundle=bundle, created_by=user, **adj)

        config.line_model.objects.filter(pk__in=line_ids).update(
            status='issued',
            issue_date=bundle.issued_date or timezone.localdate(),
            updated_at=timezone.now(),
        )
        sync_bundle_status(config, bundle)

    logger.info(f"{config.kind.capitalize()} bundle {bundle.pk} created with {len(prepared)} items")
    return bundle


def _apply_totals(bundle, totals):
    for key in ('total_amount', 'total_tax_amount', 'total_amount_with_tax',
                'item_extra_amount', 'item_extra_amount_tax',
                'bundle_extra_amount', 'bundle_extra_amount_tax'):
        setattr(bundle, key, totals[key])


def recalculate_bundle(config, bundle):
    """Recompute and store bundle totals from its items and adjustments"""
    items = list(bundle.items.prefetch_related('adjustments'))
    item_rows = [{'base_amount': item.base_amount, 'tax_amount': item.tax_amount} for item in items]
    item_adjustments = [
        {'type': adj.type, 'amount': adj.amount, 'tax_amount': adj.tax_amount}
        for item in items for adj in item.adjustments.all()
    ]
    bundle_adjustments = [
        {'type': adj.type, 'amount': adj.amount, 'tax_amount': adj.tax_amount}
        for adj in bundle.adjustments.all()
    ]
    totals = compute_bundle_totals(item_rows, bundle_adjustments, item_adjustments)
    _apply_totals(bundle, totals)
    bundle.order_count = len({getattr(item, config.line_field).order_id for item in items})
    bundle.save(update_fields=['total_amount', 'total_tax_amount', 'total_amount_with_tax',
                               'item_extra_amount', 'item_extra_amount_tax',
                               'bundle_extra_amount', 'bundle_extra_amount_tax',
                               'order_count', 'updated_at'])
    return totals


def delete_bundle(config, bundle):
    """Delete a bundle and return its settlement rows to draft"""
    if bundle.status == 'paid':
        raise SettlementError('A paid bundle cannot be deleted')

    with transaction.atomic():
        line_ids = list(bundle.items.values_list(f'{config.line_field}_id', flat=True))
        config.item_adjustment_model.objects.filter(item__bundle=bundle).delete()
        bundle.adjustments.all().delete()
        bundle.items.all().delete()
        config.line_model.objects.filter(pk__in=line_ids).update(
            status='draft', issue_date=None, updated_at=timezone.now()
        )
        bundle.delete()

    logger.info(f"{config.kind.capitalize()} bundle deleted, {len(line_ids)} rows returned to draft")
    return line_ids


def sync_bundle_status(config, bundle):
    """Carry a bundle's status down to its settlement rows; draft and issued bundles hold issued rows"""
    line_ids = bundle.items.values_list(f'{config.line_field}_id', flat=True)
    lines = config.line_model.objects.filter(pk__in=list(line_ids))
    if bundle.status == 'paid':
        lines.update(status='paid', payment_date=bundle.paid_date or timezone.localdate(),
                     updated_at=timezone.now())
    elif bundle.status == 'canceled':
        lines.update(status='canceled', updated_at=timezone.now())
    else:
        lines.update(status='issued', payment_date=None, updated_at=timezone.now())


def order_charge_totals(order, side):
    """Sum the order's charge lines for one side: (subtotal, tax)"""
    subtotal = ZERO
    tax = ZERO
    for line in ChargeLine.objects.filter(group__order=order, side=side):
        subtotal += line.amount
        tax += line.tax_amount
    return quantize(subtotal), quantize(tax)


def financial_snapshot(order):
    """Charge groups and lines of an order as plain JSON, frozen at settlement time"""
    groups = []
    for group in order.charge_groups.prefetch_related('lines'):
        groups.append({
            'id': group.pk,
            'stage': group.stage,
            'reason': group.reason,
            'description': group.description,
            'lines': [
                {
                    'id': line.pk,
                    'side': line.side,
                    'amount': str(line.amount),
                    'tax_rate': str(line.tax_rate),
                    'tax_amount': str(line.tax_amount),
                    'memo': line.memo,
                }
                for line in group.lines.all()
            ],
        })
    sales_subtotal, sales_tax = order_charge_totals(order, 'sales')
    purchase_subtotal, purchase_tax = order_charge_totals(order, 'purchase')
    return {
        'groups': groups,
        'sales': {'subtotal': str(sales_subtotal), 'tax': str(sales_tax)},
        'purchase': {'subtotal': str(purchase_subtotal), 'tax': str(purchase_tax)},
        'profit': str(sales_subtotal - purchase_subtotal),
        'captured_at': timezone.now().isoformat(),
    }


def create_settlement(order, user=None, issue_date=None, due_date=None, memo=''):
    """
    Create the order sale and order purchase for an order in one transaction.

    The sale bills the order's company. The purchase pays the dispatch's
    driver. Amounts come from the order's charge lines.
    """
    dispatch = getattr(order, 'dispatch', None)
    if dispatch is None:
        raise SettlementError('Order has no dispatch to settle')
    if OrderSale.objects.filter(order=order).exclude(status__in=['canceled', 'void']).exists():
        raise SettlementError('Order already has an active sales settlement', status_code=409)
    if OrderPurchase.objects.filter(order=order).exclude(status__in=['canceled', 'void']).exists():
        raise SettlementError('Order already has an active purchase settlement', status_code=409)

    sales_subtotal, sales_tax = order_charge_totals(order, 'sales')
    purchase_subtotal, purchase_tax = order_charge_totals(order, 'purchase')
    snapshot = financial_snapshot(order)

    with transaction.atomic():
        sale = OrderSale.objects.create(
            order=order,
            company=order.company,
            invoice_number=generate_document_number('SAL', OrderSale, 'invoice_number'),
            issue_date=issue_date,
            due_date=due_date,
            subtotal_amount=sales_subtotal,
            tax_amount=sales_tax,
            financial_snapshot=snapshot,
            memo=memo,
            created_by=user,
            updated_by=user,
        )
        purchase = OrderPurchase.objects.create(
            order=order,
            driver=dispatch.driver,
            company=dispatch.driver.company,
            invoice_number=generate_document_number('PUR', OrderPurchase, 'invoice_number'),
            issue_date=issue_date,
            due_date=due_date,
            subtotal_amount=purchase_subtotal,
            tax_amount=purchase_tax,
            financial_snapshot=snapshot,
            memo=memo,
            created_by=user,
            updated_by=user,
        )

    logger.info(f"Settlement created for order {order.pk}: sale {sale.invoice_number}, purchase {purchase.invoice_number}")
    return sale, purchase

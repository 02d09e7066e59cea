import logging
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404

from backend.core.utils import log_change, make_snapshot, paginate, parse_id_list
from backend.orders.models import Order
from .filters import (
    OrderSaleFilter, OrderPurchaseFilter, SalesBundleFilter, PurchaseBundleFilter,
)
from .models import ChargeGroup, ChargeLine, OrderSale, OrderPurchase
from .serializers import (
    ChargeGroupSerializer, ChargeLineSerializer, SettlementCreateSerializer,
    OrderSaleSerializer, OrderPurchaseSerializer, BundleItemInputSerializer,
    AdjustmentInputSerializer, BUNDLE_SERIALIZERS,
)
from .utils import (
    BUNDLE_CONFIGS, SettlementError, create_bundle, create_settlement, delete_bundle,
    generate_document_number, manager_snapshot, recalculate_bundle, sync_bundle_status,
)

logger = logging.getLogger(__name__)

LINE_CHANGE_TYPES = {
    'sales': 'update_price_sales',
    'purchase': 'update_price_purchase',
}
LINE_DIFF_FIELDS = ['side', 'amount', 'tax_rate', 'tax_amount', 'memo']

SETTLEMENT_MODELS = {'sales': OrderSale, 'purchase': OrderPurchase}
SETTLEMENT_SERIALIZERS = {'sales': OrderSaleSerializer, 'purchase': OrderPurchaseSerializer}
SETTLEMENT_FILTERS = {'sales': OrderSaleFilter, 'purchase': OrderPurchaseFilter}
SETTLEMENT_PREFIXES = {'sales': 'SAL', 'purchase': 'PUR'}

BUNDLE_FILTERS = {'sales': SalesBundleFilter, 'purchase': PurchaseBundleFilter}

BUNDLE_EDITABLE_FIELDS = [
    'period_from', 'period_to', 'period_type', 'status', 'manager', 'payment_method',
    'bank_code', 'bank_account_number', 'bank_account_holder', 'settlement_memo',
    'issued_date', 'due_date', 'paid_date', 'settled_at', 'settlement_batch_id',
]


def _locked_response():
    return Response({'error': 'Charge group is locked'}, status=status.HTTP_403_FORBIDDEN)


def _log_line_change(request, order_id, side, old_data=None, new_data=None, reason=''):
    log_change(request, 'order', order_id, LINE_CHANGE_TYPES[side],
               old_data=old_data, new_data=new_data, reason=reason, fields=LINE_DIFF_FIELDS)


# Charge groups and lines
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def charge_group_list_create(request):
    """
    GET  ?order_id=  charge groups of one order with their lines
    POST {order, dispatch?, stage, reason, description, lines?: [...]}
    """
    if request.method == 'GET':
        order_id = request.query_params.get('order_id')
        if not order_id:
            return Response({'error': 'order_id is required'}, status=status.HTTP_400_BAD_REQUEST)
        order = get_object_or_404(Order, pk=order_id)
        groups = order.charge_groups.prefetch_related('lines').order_by('created_at', 'id')
        return Response(ChargeGroupSerializer(groups, many=True).data)

    order = get_object_or_404(Order, pk=request.data.get('order'))
    serializer = ChargeGroupSerializer(data=request.data, context={'order': order})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    line_serializer = ChargeLineSerializer(data=request.data.get('lines') or [], many=True)
    if not line_serializer.is_valid():
        return Response({'lines': line_serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        group = serializer.save(order=order, created_by=request.user)
        lines = line_serializer.save(group=group, created_by=request.user)

    for line in lines:
        _log_line_change(request, order.pk, line.side, new_data=make_snapshot(ChargeLineSerializer, line),
                         reason=request.data.get('reason', ''))
    return Response(ChargeGroupSerializer(group).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def charge_group_detail(request, pk):
    group = get_object_or_404(ChargeGroup.objects.prefetch_related('lines'), pk=pk)

    if request.method == 'GET':
        return Response(ChargeGroupSerializer(group).data)

    if request.method == 'PATCH':
        # Only the lock flag itself may be changed while a group is locked
        if group.is_locked and set(request.data) - {'is_locked', 'reason'}:
            return _locked_response()
        serializer = ChargeGroupSerializer(group, data=request.data, partial=True, context={'order': group.order})
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if group.is_locked:
        return _locked_response()
    removed = [(line.side, make_snapshot(ChargeLineSerializer, line)) for line in group.lines.all()]
    order_id = group.order_id
    group.delete()
    for side, snapshot in removed:
        _log_line_change(request, order_id, side, old_data=snapshot, reason=request.query_params.get('reason', ''))
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def charge_line_list_create(request, group_pk):
    group = get_object_or_404(ChargeGroup, pk=group_pk)

    if request.method == 'GET':
        return Response(ChargeLineSerializer(group.lines.all(), many=True).data)

    if group.is_locked:
        return _locked_response()
    serializer = ChargeLineSerializer(data=request.data)
    if serializer.is_valid():
        line = serializer.save(group=group, created_by=request.user)
        _log_line_change(request, group.order_id, line.side, new_data=make_snapshot(ChargeLineSerializer, line),
                         reason=request.data.get('reason', ''))
        return Response(ChargeLineSerializer(line).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def charge_line_detail(request, pk):
    line = get_object_or_404(ChargeLine.objects.select_related('group'), pk=pk)

    if request.method == 'GET':
        return Response(ChargeLineSerializer(line).data)

    if line.group.is_locked:
        return _locked_response()

    old_data = make_snapshot(ChargeLineSerializer, line)
    order_id = line.group.order_id

    if request.method == 'PATCH':
        serializer = ChargeLineSerializer(line, data=request.data, partial=True)
        if serializer.is_valid():
            line = serializer.save()
            _log_line_change(request, order_id, line.side, old_data=old_data,
                             new_data=make_snapshot(ChargeLineSerializer, line),
                             reason=request.data.get('reason', ''))
            return Response(ChargeLineSerializer(line).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    side = line.side
    line.delete()
    _log_line_change(request, order_id, side, old_data=old_data, reason=request.query_params.get('reason', ''))
    return Response(status=status.HTTP_204_NO_CONTENT)


# Order sales and purchases
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def settlement_list_create(request, kind):
    """List or create order sales (kind='sales') or order purchases (kind='purchase')"""
    model = SETTLEMENT_MODELS[kind]
    serializer_class = SETTLEMENT_SERIALIZERS[kind]

    if request.method == 'GET':
        queryset = model.objects.select_related('order', 'company')
        filterset = SETTLEMENT_FILTERS[kind](request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(paginate(request, filterset.qs.order_by('-created_at', '-id'), serializer_class))

    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        record = serializer.save(
            invoice_number=generate_document_number(SETTLEMENT_PREFIXES[kind], model, 'invoice_number'),
            created_by=request.user,
            updated_by=request.user,
        )
        logger.info(f"Order {kind} {record.invoice_number} created for order {record.order_id}")
        return Response(serializer_class(record).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def settlement_detail(request, kind, pk):
    model = SETTLEMENT_MODELS[kind]
    serializer_class = SETTLEMENT_SERIALIZERS[kind]
    record = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(record).data)

    if request.method == 'PATCH':
        serializer = serializer_class(record, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if record.status == 'paid':
        return Response({'error': 'Paid settlements cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        record.delete()
    except ProtectedError:
        return Response({'error': 'Settlement is part of a bundle. Remove the bundle first.'},
                        status=status.HTTP_400_BAD_REQUEST)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def settlement_create(request):
    """Create the order sale and order purchase of an order from its charge lines"""
    serializer = SettlementCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    order = get_object_or_404(Order.objects.select_related('company'), pk=data['order'])
    try:
        sale, purchase = create_settlement(
            order,
            user=request.user,
            issue_date=data.get('issue_date'),
            due_date=data.get('due_date'),
            memo=data.get('memo', ''),
        )
    except SettlementError as e:
        return Response({'error': e.message}, status=e.status_code)

    return Response({
        'sale': OrderSaleSerializer(sale).data,
        'purchase': OrderPurchaseSerializer(purchase).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_summary(request):
    """
    Summarize selected orders per shipper company.

    GET ?order_ids=1,2,3
    Charge amount is the order sale total, dispatch amount the order
    purchase total, profit the difference.
    """
    order_ids = parse_id_list(request.query_params.get('order_ids'))
    if not order_ids:
        return Response({'error': 'order_ids is required'}, status=status.HTTP_400_BAD_REQUEST)

    active = ['draft', 'issued', 'paid']
    purchases = {}
    for purchase in OrderPurchase.objects.filter(order_id__in=order_ids, status__in=active):
        purchases[purchase.order_id] = purchases.get(purchase.order_id, Decimal('0.00')) + purchase.total_amount

    companies = {}
    sales = OrderSale.objects.filter(order_id__in=order_ids, status__in=active).select_related('company')
    for sale in sales.order_by('company__name', 'order_id'):
        entry = companies.setdefault(sale.company_id, {
            'company_id': sale.company_id,
            'company_name': sale.company.name,
            'items': 0,
            'charge_amount': Decimal('0.00'),
            'dispatch_amount': Decimal('0.00'),
            'profit_amount': Decimal('0.00'),
        })
        dispatch_amount = purchases.get(sale.order_id, Decimal('0.00'))
        entry['items'] += 1
        entry['charge_amount'] += sale.total_amount
        entry['dispatch_amount'] += dispatch_amount
        entry['profit_amount'] += sale.total_amount - dispatch_amount

    rows = list(companies.values())
    return Response({
        'total_items': sum(row['items'] for row in rows),
        'total_charge_amount': sum((row['charge_amount'] for row in rows), Decimal('0.00')),
        'total_dispatch_amount': sum((row['dispatch_amount'] for row in rows), Decimal('0.00')),
        'total_profit_amount': sum((row['profit_amount'] for row in rows), Decimal('0.00')),
        'companies': rows,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def settlement_waiting(request, kind):
    """Draft sales or purchases of completed orders whose dispatch is closed"""
    model = SETTLEMENT_MODELS[kind]
    queryset = model.objects.filter(
        status='draft',
        order__flow_status='completed',
        order__dispatch__is_closed=True,
    ).select_related('order', 'company')
    filterset = SETTLEMENT_FILTERS[kind](request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(paginate(request, filterset.qs.order_by('-order__created_at', '-id'),
                             SETTLEMENT_SERIALIZERS[kind], default_limit=10))


# Bundles
def _bundle_queryset(kind):
    config = BUNDLE_CONFIGS[kind]
    queryset = config.bundle_model.objects.select_related('company', 'manager')
    if kind == 'purchase':
        queryset = queryset.select_related('driver')
    return queryset


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bundle_list_create(request, kind):
    """
    List bundles or create one from draft order sales/purchases.

    POST body: bundle fields plus
        items: [{id, base_amount?, tax_amount?, adjustments?: [...]}]
        adjustments: [{type, description, amount, tax_amount?}]
    """
    config = BUNDLE_CONFIGS[kind]
    serializers_for = BUNDLE_SERIALIZERS[kind]

    if request.method == 'GET':
        filterset = BUNDLE_FILTERS[kind](request.query_params, queryset=_bundle_queryset(kind))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(paginate(request, filterset.qs.order_by('-created_at', '-id'), serializers_for['bundle']))

    serializer = serializers_for['bundle'](data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    items = request.data.get('items')
    if not items:
        return Response({'items': ['At least one item is required']}, status=status.HTTP_400_BAD_REQUEST)
    item_serializer = BundleItemInputSerializer(data=items, many=True)
    if not item_serializer.is_valid():
        return Response({'items': item_serializer.errors}, status=status.HTTP_400_BAD_REQUEST)
    adjustment_serializer = AdjustmentInputSerializer(data=request.data.get('adjustments') or [], many=True)
    if not adjustment_serializer.is_valid():
        return Response({'adjustments': adjustment_serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    try:
        bundle = create_bundle(
            config,
            serializer.validated_data,
            item_serializer.validated_data,
            adjustment_serializer.validated_data,
            user=request.user,
        )
    except SettlementError as e:
        return Response({'error': e.message}, status=e.status_code)

    return Response(serializers_for['detail'](bundle).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def bundle_detail(request, kind, pk):
    config = BUNDLE_CONFIGS[kind]
    serializers_for = BUNDLE_SERIALIZERS[kind]
    bundle = get_object_or_404(_bundle_queryset(kind), pk=pk)

    if request.method == 'GET':
        return Response(serializers_for['detail'](bundle).data)

    if request.method == 'DELETE':
        try:
            delete_bundle(config, bundle)
        except SettlementError as e:
            return Response({'error': e.message}, status=e.status_code)
        return Response(status=status.HTTP_204_NO_CONTENT)

    allowed = BUNDLE_EDITABLE_FIELDS + [config.number_field]
    invalid_fields = sorted(set(request.data) - set(allowed))
    if invalid_fields:
        return Response({'error': 'Some fields cannot be updated', 'fields': invalid_fields},
                        status=status.HTTP_400_BAD_REQUEST)

    old_status = bundle.status
    serializer = serializers_for['bundle'](bundle, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        bundle = serializer.save(updated_by=request.user)
        if 'manager' in serializer.validated_data:
            bundle.manager_snapshot = manager_snapshot(bundle.manager)
            bundle.save(update_fields=['manager_snapshot', 'updated_at'])
        if bundle.status != old_status:
            sync_bundle_status(config, bundle)
            logger.info(f"{kind.capitalize()} bundle {bundle.pk} status {old_status} -> {bundle.status}")

    return Response(serializers_for['detail'](bundle).data)


def _editable_bundle_or_error(bundle):
    if bundle.status == 'paid':
        return Response({'error': 'Paid bundles cannot be adjusted'}, status=status.HTTP_400_BAD_REQUEST)
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bundle_adjustment_list_create(request, kind, pk):
    """Bundle-level discounts and surcharges; every change recomputes the totals"""
    config = BUNDLE_CONFIGS[kind]
    serializer_class = BUNDLE_SERIALIZERS[kind]['bundle_adjustment']
    bundle = get_object_or_404(config.bundle_model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(bundle.adjustments.all(), many=True).data)

    error = _editable_bundle_or_error(bundle)
    if error:
        return error
    serializer = serializer_class(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        adjustment = serializer.save(bundle=bundle, created_by=request.user)
        recalculate_bundle(config, bundle)
    return Response(serializer_class(adjustment).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def bundle_adjustment_detail(request, kind, pk, adjustment_pk):
    config = BUNDLE_CONFIGS[kind]
    serializer_class = BUNDLE_SERIALIZERS[kind]['bundle_adjustment']
    adjustment = get_object_or_404(config.bundle_adjustment_model, pk=adjustment_pk, bundle_id=pk)
    bundle = adjustment.bundle

    error = _editable_bundle_or_error(bundle)
    if error:
        return error

    if request.method == 'PATCH':
        serializer = serializer_class(adjustment, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            serializer.save()
            recalculate_bundle(config, bundle)
        return Response(serializer.data)

    with transaction.atomic():
        adjustment.delete()
        recalculate_bundle(config, bundle)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def item_adjustment_list_create(request, kind, item_pk):
    """Item-level discounts and surcharges; every change recomputes the bundle totals"""
    config = BUNDLE_CONFIGS[kind]
    serializer_class = BUNDLE_SERIALIZERS[kind]['item_adjustment']
    item = get_object_or_404(config.item_model.objects.select_related('bundle'), pk=item_pk)

    if request.method == 'GET':
        return Response(serializer_class(item.adjustments.all(), many=True).data)

    error = _editable_bundle_or_error(item.bundle)
    if error:
        return error
    serializer = serializer_class(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        adjustment = serializer.save(item=item, created_by=request.user)
        recalculate_bundle(config, item.bundle)
    return Response(serializer_class(adjustment).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def item_adjustment_detail(request, kind, item_pk, adjustment_pk):
    config = BUNDLE_CONFIGS[kind]
    serializer_class = BUNDLE_SERIALIZERS[kind]['item_adjustment']
    adjustment = get_object_or_404(config.item_adjustment_model.objects.select_related('item__bundle'),
                                   pk=adjustment_pk, item_id=item_pk)
    bundle = adjustment.item.bundle

    error = _editable_bundle_or_error(bundle)
    if error:
        return error

    if request.method == 'PATCH':
        serializer = serializer_class(adjustment, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            serializer.save()
            recalculate_bundle(config, bundle)
        return Response(serializer.data)

    with transaction.atomic():
        adjustment.delete()
        recalculate_bundle(config, bundle)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bundle_order_list(request, kind, pk):
    """Items of a bundle with the orders behind them"""
    config = BUNDLE_CONFIGS[kind]
    bundle = get_object_or_404(config.bundle_model, pk=pk)
    items = bundle.items.select_related(f'{config.line_field}__order').prefetch_related('adjustments')

    results = []
    for item in items:
        line = getattr(item, config.line_field)
        order = line.order
        results.append({
            'item_id': item.pk,
            'line_id': line.pk,
            'invoice_number': line.invoice_number,
            'base_amount': item.base_amount,
            'tax_amount': item.tax_amount,
            'adjustments': BUNDLE_SERIALIZERS[kind]['item_adjustment'](item.adjustments.all(), many=True).data,
            'order': {
                'id': order.pk,
                'cargo_name': order.cargo_name,
                'flow_status': order.flow_status,
                'pickup_name': order.pickup_name,
                'pickup_date': order.pickup_date,
                'delivery_name': order.delivery_name,
                'delivery_date': order.delivery_date,
                'requested_vehicle_type': order.requested_vehicle_type,
                'requested_vehicle_weight': order.requested_vehicle_weight,
            },
        })
    return Response({'bundle_id': bundle.pk, 'count': len(results), 'results': results})

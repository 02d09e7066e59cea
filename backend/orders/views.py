import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from django.utils import timezone

from backend.core.utils import log_change, make_snapshot, paginate, parse_id_list
from backend.core.views import entity_change_logs, update_allowed_fields
from .filters import OrderFilter
from .models import Order, OrderDispatch, FLOW_STATUS_CHOICES
from .serializers import OrderSerializer, OrderDetailSerializer, OrderDispatchSerializer

logger = logging.getLogger(__name__)

ORDER_EDITABLE_FIELDS = [
    'cargo_name', 'requested_vehicle_type', 'requested_vehicle_weight',
    'pickup_address', 'pickup_name', 'pickup_contact_name', 'pickup_contact_phone', 'pickup_date', 'pickup_time',
    'delivery_address', 'delivery_name', 'delivery_contact_name', 'delivery_contact_phone', 'delivery_date', 'delivery_time',
    'estimated_price_amount', 'price_type', 'tax_type', 'estimated_distance_km', 'estimated_duration_min',
    'contact_user', 'memo',
]

DISPATCH_EDITABLE_FIELDS = [
    'broker_manager', 'driver', 'vehicle_number', 'vehicle_type', 'vehicle_weight',
    'vehicle_connection', 'agreed_freight_cost', 'broker_memo', 'broker_flow_status',
]

SHIPPER_LEVELS = {'shipper_admin', 'shipper_member'}
FLOW_STATUSES = dict(FLOW_STATUS_CHOICES)
BATCH_ACTIONS = ['cancel', 'delete', 'update_status']


def scoped_orders(request, queryset=None):
    """Shipper users only see their own company's orders"""
    if queryset is None:
        queryset = Order.objects.all()
    user = request.user
    if user.access_level in SHIPPER_LEVELS and user.company_id and not user.is_superuser:
        queryset = queryset.filter(company_id=user.company_id)
    return queryset


def _set_flow_status(request, order, new_status, reason=''):
    old_data = make_snapshot(OrderSerializer, order)
    order.flow_status = new_status
    order.updated_by = request.user
    order.save(update_fields=['flow_status', 'updated_by', 'updated_at'])
    log_change(request, 'order', order.pk, 'status_change', old_data=old_data,
               new_data=make_snapshot(OrderSerializer, order), reason=reason, fields=['flow_status'])


def _cancel_error(order):
    if order.is_canceled:
        return 'Order is already canceled'
    if order.flow_status == 'completed':
        return 'Completed orders cannot be canceled'
    return None


def _status_error(order, new_status):
    if order.is_canceled:
        return 'Canceled orders cannot change status'
    if order.flow_status == new_status:
        return f'Order is already {new_status}'
    return None


def _cancel_order(request, order, reason=''):
    old_data = make_snapshot(OrderSerializer, order)
    order.is_canceled = True
    order.updated_by = request.user
    order.save(update_fields=['is_canceled', 'updated_by', 'updated_at'])
    log_change(request, 'order', order.pk, 'cancel', old_data=old_data,
               new_data=make_snapshot(OrderSerializer, order), reason=reason, fields=['is_canceled'])


def _change_status(request, order, new_status, reason=''):
    _set_flow_status(request, order, new_status, reason=reason)
    OrderDispatch.objects.filter(order=order).update(broker_flow_status=new_status, updated_at=timezone.now())


def _delete_order(request, order, reason=''):
    """Delete an undispatched order; ProtectedError propagates when settlements exist"""
    old_data = make_snapshot(OrderSerializer, order)
    pk = order.pk
    order.delete()
    log_change(request, 'order', pk, 'delete', old_data=old_data, reason=reason)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List orders or register a new one"""
    if request.method == 'GET':
        queryset = scoped_orders(request, Order.objects.select_related('company'))
        filterset = OrderFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-created_at', '-id')
        return Response(paginate(request, queryset, OrderSerializer))

    data = request.data.copy()
    if not data.get('company') and request.user.company_id:
        data['company'] = request.user.company_id
    if not data.get('contact_user'):
        data['contact_user'] = request.user.pk

    serializer = OrderSerializer(data=data)
    if serializer.is_valid():
        order = serializer.save(created_by=request.user, updated_by=request.user)
        log_change(request, 'order', order.pk, 'create', new_data=make_snapshot(OrderSerializer, order))
        logger.info(f"Order {order.pk} created by {request.user}")
        return Response(OrderDetailSerializer(order).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve, update or delete an order"""
    order = get_object_or_404(scoped_orders(request), pk=pk)

    if request.method == 'GET':
        return Response(OrderDetailSerializer(order).data)

    old_data = make_snapshot(OrderSerializer, order)

    if request.method in ('PUT', 'PATCH'):
        serializer = OrderSerializer(order, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            order = serializer.save(updated_by=request.user)
            change_type = 'status_change' if old_data['flow_status'] != order.flow_status else 'update'
            log_change(request, 'order', order.pk, change_type, old_data=old_data,
                       new_data=make_snapshot(OrderSerializer, order),
                       reason=request.data.get('reason', ''))
            return Response(OrderDetailSerializer(order).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    if OrderDispatch.objects.filter(order=order).exists():
        return Response({'error': 'Dispatched orders cannot be deleted. Cancel the order instead.'},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        with transaction.atomic():
            _delete_order(request, order, reason=request.query_params.get('reason', ''))
    except ProtectedError:
        return Response({'error': 'Order has settlement records and cannot be deleted'},
                        status=status.HTTP_400_BAD_REQUEST)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def order_fields(request, pk):
    """Update an allow-listed subset of order fields"""
    order = get_object_or_404(scoped_orders(request), pk=pk)
    if order.is_canceled:
        return Response({'error': 'Canceled orders cannot be edited'}, status=status.HTTP_400_BAD_REQUEST)
    return update_allowed_fields(request, order, OrderSerializer, ORDER_EDITABLE_FIELDS, 'order')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_status(request, pk):
    """Move an order to another flow status"""
    order = get_object_or_404(scoped_orders(request), pk=pk)
    new_status = request.data.get('flow_status')

    if new_status not in FLOW_STATUSES:
        return Response({'error': f'Invalid flow_status: {new_status}'}, status=status.HTTP_400_BAD_REQUEST)
    error = _status_error(order, new_status)
    if error:
        return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        _change_status(request, order, new_status, reason=request.data.get('reason', ''))

    return Response(OrderDetailSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_cancel(request, pk):
    """Cancel an order"""
    order = get_object_or_404(scoped_orders(request), pk=pk)

    error = _cancel_error(order)
    if error:
        return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)

    _cancel_order(request, order, reason=request.data.get('reason', ''))
    return Response(OrderDetailSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_batch(request):
    """
    Cancel, delete or move many orders to one flow status.

    Each id is processed in its own transaction with the same rules as the
    single-order endpoints; the response counts successes and lists failures.
    """
    action = request.data.get('action')
    ids = parse_id_list(request.data.get('ids'))
    new_status = request.data.get('flow_status')
    reason = request.data.get('reason', '')

    if action not in BATCH_ACTIONS:
        return Response({'error': f'action must be one of {", ".join(BATCH_ACTIONS)}'}, status=status.HTTP_400_BAD_REQUEST)
    if not ids:
        return Response({'error': 'ids must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)
    if action == 'update_status' and new_status not in FLOW_STATUSES:
        return Response({'error': f'Invalid flow_status: {new_status}'}, status=status.HTTP_400_BAD_REQUEST)

    orders = {order.pk: order for order in scoped_orders(request, Order.objects.filter(pk__in=ids))}
    processed, failed, errors = 0, 0, []

    for order_id in ids:
        order = orders.get(order_id)
        if order is None:
            error = 'Order not found'
        elif action == 'cancel':
            error = _cancel_error(order)
        elif action == 'update_status':
            error = _status_error(order, new_status)
        elif OrderDispatch.objects.filter(order=order).exists():
            error = 'Dispatched orders cannot be deleted'
        else:
            error = None

        if error is None:
            try:
                with transaction.atomic():
                    if action == 'cancel':
                        _cancel_order(request, order, reason=reason)
                    elif action == 'update_status':
                        _change_status(request, order, new_status, reason=reason)
                    else:
                        _delete_order(request, order, reason=reason)
            except ProtectedError:
                error = 'Order has settlement records and cannot be deleted'

        if error:
            failed += 1
            errors.append({'id': order_id, 'error': error})
        else:
            processed += 1

    logger.info(f"Order batch {action} by {request.user}: {processed} processed, {failed} failed")
    return Response({'processed': processed, 'failed': failed, 'errors': errors})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_validate(request):
    """Run order registration checks without saving anything"""
    data = request.data.copy()
    if not data.get('company') and request.user.company_id:
        data['company'] = request.user.company_id

    serializer = OrderSerializer(data=data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response({'valid': True})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_change_logs(request, pk):
    order = get_object_or_404(scoped_orders(request), pk=pk)
    return entity_change_logs(request, 'order', order.pk)


@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_dispatch(request, pk):
    """
    Dispatch of an order.

    POST assigns a broker, driver and vehicle (409 if one exists already),
    DELETE withdraws it and puts the order back to awaiting_dispatch.
    """
    order = get_object_or_404(scoped_orders(request), pk=pk)
    dispatch = OrderDispatch.objects.filter(order=order).first()

    if request.method == 'GET':
        if dispatch is None:
            return Response({'error': 'Order has not been dispatched'}, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderDispatchSerializer(dispatch).data)

    if request.method == 'DELETE':
        if dispatch is None:
            return Response({'error': 'Order has not been dispatched'}, status=status.HTTP_404_NOT_FOUND)
        if dispatch.is_closed:
            return Response({'error': 'Closed dispatches cannot be withdrawn'}, status=status.HTTP_400_BAD_REQUEST)
        reason = request.query_params.get('reason', '')
        old_dispatch = make_snapshot(OrderDispatchSerializer, dispatch)
        with transaction.atomic():
            dispatch.delete()
            log_change(request, 'dispatch', old_dispatch['id'], 'delete', old_data=old_dispatch, reason=reason)
            _set_flow_status(request, order, 'awaiting_dispatch', reason=reason)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # POST
    if dispatch is not None:
        return Response({'error': 'Order is already dispatched', 'dispatch_id': dispatch.pk},
                        status=status.HTTP_409_CONFLICT)
    if order.is_canceled:
        return Response({'error': 'Canceled orders cannot be dispatched'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = OrderDispatchSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        dispatch = serializer.save(order=order, created_by=request.user, updated_by=request.user)
        driver = dispatch.driver
        driver.last_dispatched_at = timezone.now()
        driver.save(update_fields=['last_dispatched_at', 'updated_at'])
        log_change(request, 'dispatch', dispatch.pk, 'create', new_data=make_snapshot(OrderDispatchSerializer, dispatch))
        _set_flow_status(request, order, 'dispatched', reason=request.data.get('reason', ''))

    logger.info(f"Order {order.pk} dispatched to driver {driver.pk} ({dispatch.vehicle_number})")
    return Response(OrderDispatchSerializer(dispatch).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def dispatch_fields(request, pk):
    """
    Update an allow-listed subset of dispatch fields.
    A broker_flow_status change is mirrored onto the order.
    """
    dispatch = get_object_or_404(OrderDispatch.objects.select_related('order'), pk=pk)
    if dispatch.is_closed:
        return Response({'error': 'Closed dispatches cannot be edited'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        response = update_allowed_fields(request, dispatch, OrderDispatchSerializer, DISPATCH_EDITABLE_FIELDS, 'dispatch')
        if response.status_code != status.HTTP_200_OK:
            return response

        dispatch.refresh_from_db()
        order = dispatch.order
        if 'broker_flow_status' in request.data.get('fields', {}) and order.flow_status != dispatch.broker_flow_status:
            _set_flow_status(request, order, dispatch.broker_flow_status, reason=request.data.get('reason', ''))
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def dispatch_close(request, pk):
    """Close a dispatch for settlement. Closing twice is a no-op."""
    dispatch = get_object_or_404(OrderDispatch, pk=pk)
    if dispatch.is_closed:
        return Response(OrderDispatchSerializer(dispatch).data)

    old_data = make_snapshot(OrderDispatchSerializer, dispatch)
    dispatch.is_closed = True
    dispatch.closed_at = timezone.now()
    dispatch.updated_by = request.user
    dispatch.save(update_fields=['is_closed', 'closed_at', 'updated_by', 'updated_at'])
    log_change(request, 'dispatch', dispatch.pk, 'status_change', old_data=old_data,
               new_data=make_snapshot(OrderDispatchSerializer, dispatch),
               reason=request.data.get('reason', ''), fields=['is_closed'])
    return Response(OrderDispatchSerializer(dispatch).data)

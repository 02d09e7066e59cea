import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from backend.core.utils import log_change, make_snapshot, paginate, parse_id_list
from backend.core.views import entity_change_logs
from backend.distance.utils import invalidate_distance_cache
from backend.orders.models import Order
from .filters import AddressFilter
from .models import Address
from .serializers import AddressSerializer

logger = logging.getLogger(__name__)

# Fields compared when logging an address update
ADDRESS_DIFF_FIELDS = [
    'name', 'type', 'road_address', 'jibun_address', 'detail_address', 'postal_code',
    'contact_name', 'contact_phone', 'memo', 'is_frequent',
    'metadata.originalInput', 'metadata.source', 'metadata.lat', 'metadata.lng',
    'metadata.buildingName', 'metadata.floor', 'metadata.tags',
]

BATCH_ACTIONS = ('delete', 'set_frequent', 'unset_frequent')

RECENT_DEFAULT_LIMIT = 10
RECENT_MAX_LIMIT = 20


def _soft_delete(request, address, reason=''):
    old_data = make_snapshot(AddressSerializer, address)
    address.deleted_at = timezone.now()
    address.updated_by = request.user
    address.save(update_fields=['deleted_at', 'updated_by', 'updated_at'])
    invalidate_distance_cache(address.pk)
    log_change(request, 'address', address.pk, 'delete', old_data=old_data, reason=reason)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def address_list_create(request):
    """Search the address book or add an address"""
    if request.method == 'GET':
        filterset = AddressFilter(request.query_params, queryset=Address.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-updated_at', '-id')
        return Response(paginate(request, queryset, AddressSerializer))

    serializer = AddressSerializer(data=request.data)
    if serializer.is_valid():
        company = serializer.validated_data.get('company') or request.user.company
        address = serializer.save(company=company, created_by=request.user, updated_by=request.user)
        log_change(request, 'address', address.pk, 'create',
                   new_data=make_snapshot(AddressSerializer, address))
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def address_detail(request, pk):
    """Retrieve, update or soft-delete an address"""
    address = get_object_or_404(Address, pk=pk)

    if request.method == 'GET':
        return Response(AddressSerializer(address).data)

    if request.method == 'DELETE':
        _soft_delete(request, address, reason=request.query_params.get('reason', ''))
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_data = make_snapshot(AddressSerializer, address)
    serializer = AddressSerializer(address, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    address = serializer.save(updated_by=request.user)
    new_data = make_snapshot(AddressSerializer, address)
    log_change(request, 'address', address.pk, 'update', old_data=old_data, new_data=new_data,
               reason=request.data.get('reason', ''), fields=ADDRESS_DIFF_FIELDS)
    if old_data['road_address'] != new_data['road_address'] or old_data.get('metadata') != new_data.get('metadata'):
        invalidate_distance_cache(address.pk)
    return Response(AddressSerializer(address).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def address_batch(request):
    """
    Apply one action to many addresses.

    Each id is processed independently. The response reports how many
    succeeded and why the others failed.
    """
    action = request.data.get('action')
    ids = parse_id_list(request.data.get('ids'))
    if action not in BATCH_ACTIONS:
        return Response({'error': f'action must be one of {", ".join(BATCH_ACTIONS)}'}, status=status.HTTP_400_BAD_REQUEST)
    if not ids:
        return Response({'error': 'ids must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)

    addresses = {a.pk: a for a in Address.objects.filter(pk__in=ids)}
    processed, failed, errors = 0, 0, []
    reason = request.data.get('reason', '')

    for address_id in ids:
        address = addresses.get(address_id)
        if address is None:
            failed += 1
            errors.append({'id': address_id, 'error': 'Address not found'})
            continue
        try:
            with transaction.atomic():
                if action == 'delete':
                    _soft_delete(request, address, reason=reason)
                else:
                    old_data = make_snapshot(AddressSerializer, address)
                    address.is_frequent = action == 'set_frequent'
                    address.updated_by = request.user
                    address.save(update_fields=['is_frequent', 'updated_by', 'updated_at'])
                    log_change(request, 'address', address.pk, 'update', old_data=old_data,
                               new_data=make_snapshot(AddressSerializer, address),
                               reason=reason, fields=['is_frequent'])
            processed += 1
        except Exception as e:
            logger.error(f"Address batch {action} failed for {address_id}: {str(e)}", exc_info=True)
            failed += 1
            errors.append({'id': address_id, 'error': str(e)})

    return Response({'processed': processed, 'failed': failed, 'errors': errors})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def address_frequent(request):
    """Addresses flagged as frequently used"""
    queryset = Address.objects.filter(is_frequent=True)
    address_type = request.query_params.get('type')
    if address_type:
        queryset = queryset.filter(type__in=[address_type, 'both'])
    queryset = queryset.order_by('name')
    return Response(AddressSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def address_recent(request):
    """
    Most recently used pickup or delivery points, taken from order snapshots.

    Entries are unique on (road address, contact name, contact phone).
    """
    address_type = request.query_params.get('type')
    if address_type not in ('pickup', 'delivery'):
        return Response({'error': 'type must be pickup or delivery'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        limit = int(request.query_params.get('limit', RECENT_DEFAULT_LIMIT))
    except (TypeError, ValueError):
        limit = RECENT_DEFAULT_LIMIT
    limit = min(max(limit, 1), RECENT_MAX_LIMIT)

    orders = Order.objects.order_by('-created_at', '-id')
    if request.user.company_id:
        orders = orders.filter(company_id=request.user.company_id)

    seen = set()
    results = []
    for order in orders[:limit * 10]:
        snapshot = getattr(order, f'{address_type}_snapshot') or {}
        if not snapshot.get('road_address'):
            continue
        contact_name = getattr(order, f'{address_type}_contact_name') or snapshot.get('contact_name', '')
        contact_phone = getattr(order, f'{address_type}_contact_phone') or snapshot.get('contact_phone', '')
        key = (snapshot.get('road_address', ''), contact_name, contact_phone)
        if key in seen:
            continue
        seen.add(key)
        results.append({
            'address_id': getattr(order, f'{address_type}_address_id'),
            'name': getattr(order, f'{address_type}_name') or snapshot.get('name', ''),
            'road_address': snapshot.get('road_address', ''),
            'jibun_address': snapshot.get('jibun_address', ''),
            'detail_address': snapshot.get('detail_address', ''),
            'postal_code': snapshot.get('postal_code', ''),
            'metadata': snapshot.get('metadata', {}),
            'contact_name': contact_name,
            'contact_phone': contact_phone,
            'last_used_at': order.created_at,
            'order_id': order.pk,
        })
        if len(results) >= limit:
            break

    return Response(results)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def address_change_logs(request, pk):
    address = get_object_or_404(Address.all_objects, pk=pk)
    return entity_change_logs(request, 'address', address.pk)

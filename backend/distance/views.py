import logging
import time
from datetime import timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone
from django.utils.dateparse import parse_date

from backend.addresses.models import Address
from .kakao_service import KakaoDirectionsError, get_directions
from .serializers import CoordinatesSerializer, DistanceRequestSerializer
from .utils import (
    DIRECTIONS_CALL_COST, check_rate_limit, get_cached_distance, invalidate_distance_cache,
    record_usage, store_distance, usage_stats,
)

logger = logging.getLogger(__name__)

USAGE_STATS_DEFAULT_DAYS = 30


def _address_coordinates(address, given):
    """Explicit coordinates win; otherwise use the lat/lng stored on the address"""
    if given:
        return given
    metadata = address.metadata or {}
    if metadata.get('lat') is None or metadata.get('lng') is None:
        return None
    serializer = CoordinatesSerializer(data={'lat': metadata['lat'], 'lng': metadata['lng']})
    return serializer.validated_data if serializer.is_valid() else None


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def distance_calculate(request):
    """
    Route distance and duration between two addresses.

    Served from the distance cache when a valid row exists, otherwise from
    the Kakao Mobility directions API. Calls are rate limited per user.
    """
    started = time.monotonic()
    serializer = DistanceRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    params = {
        'pickup_address_id': data['pickup_address_id'],
        'delivery_address_id': data['delivery_address_id'],
        'priority': data['priority'],
        'force_refresh': data['force_refresh'],
    }

    is_limited, retry_after = check_rate_limit(request.user.pk)
    if is_limited:
        record_usage(request, 429, False, request_params=params, error_message='Rate limit exceeded')
        response = Response({
            'error': 'Rate limit exceeded. Try again later.',
            'retry_after': retry_after,
        }, status=status.HTTP_429_TOO_MANY_REQUESTS)
        response['Retry-After'] = str(retry_after)
        return response

    pickup = Address.objects.filter(pk=data['pickup_address_id']).first()
    delivery = Address.objects.filter(pk=data['delivery_address_id']).first()
    if pickup is None or delivery is None:
        return Response({'error': 'Address not found'}, status=status.HTTP_404_NOT_FOUND)

    if not data['force_refresh']:
        cached = get_cached_distance(pickup.pk, delivery.pk, data['priority'])
        if cached is not None:
            return Response({
                'distance_km': cached.distance_km,
                'duration_min': cached.duration_min,
                'priority': cached.priority,
                'method': 'cached',
                'cache_id': cached.pk,
                'hit_count': cached.hit_count,
                'cached_at': cached.created_at,
            })

    pickup_coordinates = _address_coordinates(pickup, data.get('pickup_coordinates'))
    delivery_coordinates = _address_coordinates(delivery, data.get('delivery_coordinates'))
    if pickup_coordinates is None or delivery_coordinates is None:
        return Response({'error': 'Coordinates are required for addresses without a stored location'},
                        status=status.HTTP_400_BAD_REQUEST)

    try:
        result = get_directions(pickup_coordinates, delivery_coordinates, data['priority'])
    except KakaoDirectionsError as e:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        record_usage(request, e.status_code or status.HTTP_502_BAD_GATEWAY, False, request_params=params,
                     response_time_ms=elapsed_ms, error_message=e.message)
        return Response({'error': e.message}, status=status.HTTP_502_BAD_GATEWAY)

    row = store_distance(pickup, delivery, dict(pickup_coordinates), dict(delivery_coordinates),
                         data['priority'], result)
    usage = record_usage(request, 200, True, request_params=params, response_time_ms=result['response_time_ms'],
                         result_count=1, estimated_cost=DIRECTIONS_CALL_COST)

    return Response({
        'distance_km': row.distance_km,
        'duration_min': row.duration_min,
        'priority': row.priority,
        'method': 'api',
        'cache_id': row.pk,
        'usage_id': usage.pk if usage else None,
        'response_time_ms': result['response_time_ms'],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def distance_usage_stats(request):
    """API usage totals and daily series; defaults to the last 30 days"""
    today = timezone.localdate()
    date_from = parse_date(request.query_params.get('date_from', '') or '') or today - timedelta(days=USAGE_STATS_DEFAULT_DAYS - 1)
    date_to = parse_date(request.query_params.get('date_to', '') or '') or today
    if date_from > date_to:
        return Response({'error': 'date_from must not be after date_to'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(usage_stats(date_from, date_to))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def distance_cache_invalidate(request):
    """Invalidate cached routes for {address_id} or {address_ids: [...]}"""
    address_ids = request.data.get('address_ids') or []
    if request.data.get('address_id') is not None:
        address_ids = list(address_ids) + [request.data.get('address_id')]
    try:
        address_ids = [int(address_id) for address_id in address_ids]
    except (TypeError, ValueError):
        return Response({'error': 'address ids must be integers'}, status=status.HTTP_400_BAD_REQUEST)
    if not address_ids:
        return Response({'error': 'address_id or address_ids is required'}, status=status.HTTP_400_BAD_REQUEST)

    invalidated = sum(invalidate_distance_cache(address_id) for address_id in address_ids)
    return Response({'invalidated': invalidated})

"""
Distance cache, API usage accounting and rate limiting
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.cache import cache
from django.db.models import Avg, Count, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from backend.core.models import ChangeLog
from backend.core.utils import get_client_ip
from .models import ApiUsageLog, DistanceCache

logger = logging.getLogger(__name__)

DIRECTIONS_CALL_COST = Decimal('8')
RATE_LIMIT_KEY = 'distance:rate:{}'


def invalidate_distance_cache(address_id):
    """Mark every cached route touching an address as stale"""
    count = DistanceCache.objects.filter(
        Q(pickup_address_id=address_id) | Q(delivery_address_id=address_id),
        is_valid=True,
    ).update(is_valid=False, updated_at=timezone.now())
    if count:
        logger.info(f"Invalidated {count} distance cache rows for address {address_id}")
    return count


def check_rate_limit(identifier):
    """
    Count one call for identifier in the current window.

    Returns (is_limited, retry_after_seconds).
    """
    limit = settings.DISTANCE_RATE_LIMIT
    window = settings.DISTANCE_RATE_WINDOW
    key = RATE_LIMIT_KEY.format(identifier)

    if cache.add(key, 1, window):
        return False, 0
    try:
        count = cache.incr(key)
    except ValueError:
        # Window expired between add() and incr()
        cache.set(key, 1, window)
        return False, 0
    if count > limit:
        return True, window
    return False, 0


def get_cached_distance(pickup_address_id, delivery_address_id, priority):
    """
    Latest valid cache row for an address pair, or None.

    A row stops being valid once either address has a change log newer than it.
    """
    row = DistanceCache.objects.filter(
        pickup_address_id=pickup_address_id,
        delivery_address_id=delivery_address_id,
        priority=priority,
        is_valid=True,
    ).order_by('-created_at', '-id').first()
    if row is None:
        return None

    changed = ChangeLog.objects.filter(
        entity_type='address',
        entity_id__in=[str(pickup_address_id), str(delivery_address_id)],
        created_at__gt=row.created_at,
    ).exists()
    if changed:
        row.is_valid = False
        row.save(update_fields=['is_valid', 'updated_at'])
        logger.info(f"Distance cache {row.pk} is stale: address changed after it was stored")
        return None

    DistanceCache.objects.filter(pk=row.pk).update(hit_count=row.hit_count + 1)
    row.hit_count += 1
    return row


def store_distance(pickup_address, delivery_address, pickup_coordinates, delivery_coordinates, priority, result):
    return DistanceCache.objects.create(
        pickup_address=pickup_address,
        delivery_address=delivery_address,
        pickup_coordinates=pickup_coordinates,
        delivery_coordinates=delivery_coordinates,
        priority=priority,
        distance_km=Decimal(str(result['distance_km'])),
        duration_min=result['duration_min'],
        route_summary=result.get('route_summary', {}),
    )


def record_usage(request, response_status, success, request_params=None, response_time_ms=0,
                 error_message='', result_count=None, estimated_cost=None, endpoint='/api/v1/distance/calculate/'):
    """Store one ApiUsageLog row; failures are logged and never raised"""
    user = getattr(request, 'user', None)
    try:
        return ApiUsageLog.objects.create(
            api_type='directions',
            endpoint=endpoint,
            request_params=request_params or {},
            response_status=response_status,
            response_time_ms=response_time_ms,
            success=success,
            error_message=(error_message or '')[:500],
            result_count=result_count,
            user=user if user is not None and user.is_authenticated else None,
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
            estimated_cost=estimated_cost if estimated_cost is not None else Decimal('0.00'),
        )
    except Exception as e:
        logger.error(f"Failed to record API usage: {str(e)}")
        return None


def usage_stats(date_from, date_to):
    """Totals and a daily series of API usage between two dates (inclusive)"""
    queryset = ApiUsageLog.objects.filter(created_at__date__gte=date_from, created_at__date__lte=date_to)
    totals = queryset.aggregate(
        total_calls=Count('id'),
        successful_calls=Count('id', filter=Q(success=True)),
        failed_calls=Count('id', filter=Q(success=False)),
        total_cost=Sum('estimated_cost'),
        avg_response_time_ms=Avg('response_time_ms'),
    )
    total_calls = totals['total_calls'] or 0
    successful = totals['successful_calls'] or 0

    daily = (
        queryset.annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(calls=Count('id'), successful=Count('id', filter=Q(success=True)), cost=Sum('estimated_cost'))
        .order_by('day')
    )
    by_type = queryset.values('api_type').annotate(calls=Count('id')).order_by('api_type')

    return {
        'date_from': date_from,
        'date_to': date_to,
        'total_calls': total_calls,
        'successful_calls': successful,
        'failed_calls': totals['failed_calls'] or 0,
        'success_rate': round(successful / total_calls * 100, 2) if total_calls else 0,
        'total_cost': totals['total_cost'] or Decimal('0.00'),
        'avg_response_time_ms': round(totals['avg_response_time_ms'] or 0),
        'by_api_type': {row['api_type']: row['calls'] for row in by_type},
        'daily': [
            {
                'date': row['day'],
                'calls': row['calls'],
                'successful_calls': row['successful'],
                'cost': row['cost'] or Decimal('0.00'),
            }
            for row in daily
        ],
    }


def cleanup_usage_logs(days):
    """Delete usage rows older than the given number of days; returns the count"""
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = ApiUsageLog.objects.filter(created_at__lt=cutoff).delete()
    return deleted

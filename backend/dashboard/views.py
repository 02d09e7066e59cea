import logging
from datetime import timedelta
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, Sum
from django.utils import timezone
from django.utils.dateparse import parse_date

from backend.charges.models import ChargeLine
from backend.core.cache_utils import cache_dashboard, get_cached_dashboard
from backend.orders.models import FLOW_STATUS_CHOICES, Order
from backend.orders.views import scoped_orders

logger = logging.getLogger(__name__)

WEEKLY_ORDER_TARGET = 100
MONTHLY_ORDER_TARGET = 350
TRENDS_MAX_DAYS = 90
BASIS_FIELDS = {'pickup': 'pickup_date', 'delivery': 'delivery_date'}


def month_range(day):
    """First and last day of the month containing day"""
    start = day.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


def _target(count, target):
    return {
        'target': target,
        'current': min(count, target),
        'percentage': min(round(count / target * 100), 100),
    }


def _sales_amount(order_queryset):
    total = ChargeLine.objects.filter(
        side='sales', group__order__in=order_queryset
    ).aggregate(total=Sum('amount'))['total']
    return total or Decimal('0')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_kpi(request):
    """
    Order KPIs for one company

    Query params:
        company_id (required)
        period: month (default, month of ?date) or custom (needs date_from and date_to)
        basis: pickup (default) or delivery date
    """
    company_id = request.query_params.get('company_id')
    if not company_id or not company_id.isdigit():
        return Response({'error': 'company_id is required'}, status=status.HTTP_400_BAD_REQUEST)

    period = request.query_params.get('period', 'month')
    basis = request.query_params.get('basis', 'pickup')
    if basis not in BASIS_FIELDS:
        return Response({'error': 'basis must be pickup or delivery'}, status=status.HTTP_400_BAD_REQUEST)

    if period == 'month':
        base_date = parse_date(request.query_params.get('date', '') or '') or timezone.localdate()
        date_from, date_to = month_range(base_date)
    elif period == 'custom':
        date_from = parse_date(request.query_params.get('date_from', '') or '')
        date_to = parse_date(request.query_params.get('date_to', '') or '')
        if not date_from or not date_to or date_from > date_to:
            return Response({'error': 'custom period needs a valid date_from and date_to'},
                            status=status.HTTP_400_BAD_REQUEST)
    else:
        return Response({'error': 'period must be month or custom'}, status=status.HTTP_400_BAD_REQUEST)

    cached, cache_key = get_cached_dashboard('kpi', company_id=company_id, date_from=str(date_from),
                                             date_to=str(date_to), basis=basis, user=request.user.pk)
    if cached is not None:
        return Response(cached)

    field = BASIS_FIELDS[basis]
    orders = scoped_orders(request, Order.objects.filter(
        company_id=int(company_id),
        **{f'{field}__gte': date_from, f'{field}__lte': date_to},
    ))
    order_count = orders.count()
    total_amount = _sales_amount(orders)
    average_amount = (total_amount / order_count).quantize(Decimal('1')) if order_count else Decimal('0')

    data = {
        'order_count': order_count,
        'order_amount': total_amount,
        'order_average': average_amount,
        'weekly_target': _target(order_count, WEEKLY_ORDER_TARGET),
        'monthly_target': _target(order_count, MONTHLY_ORDER_TARGET),
        'meta': {
            'company_id': int(company_id),
            'date_from': str(date_from),
            'date_to': str(date_to),
            'basis': basis,
        },
    }
    cache_dashboard(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_status_stats(request):
    """Order count per flow status; pickup dates from the 1st of this month to today by default"""
    today = timezone.localdate()
    date_from = parse_date(request.query_params.get('date_from', '') or '') or today.replace(day=1)
    date_to = parse_date(request.query_params.get('date_to', '') or '') or today
    company_id = request.query_params.get('company_id')
    if company_id and not company_id.isdigit():
        return Response({'error': 'company_id must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    cached, cache_key = get_cached_dashboard('status_stats', company_id=company_id or '', date_from=str(date_from),
                                             date_to=str(date_to), user=request.user.pk)
    if cached is not None:
        return Response(cached)

    orders = scoped_orders(request, Order.objects.filter(pickup_date__gte=date_from, pickup_date__lte=date_to))
    if company_id:
        orders = orders.filter(company_id=int(company_id))
    counts = dict(orders.values_list('flow_status').annotate(count=Count('id')).order_by())

    data = {
        'total_count': sum(counts.values()),
        'by_status': [
            {'status': code, 'label': label, 'count': counts.get(code, 0)}
            for code, label in FLOW_STATUS_CHOICES
        ],
        'date_from': str(date_from),
        'date_to': str(date_to),
    }
    cache_dashboard(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_trends(request):
    """
    Daily order count and sales amount by pickup date

    date_from is inclusive and date_to exclusive; the span may not exceed 90 days.
    """
    date_from = parse_date(request.query_params.get('date_from', '') or '')
    date_to = parse_date(request.query_params.get('date_to', '') or '')
    if not date_from or not date_to:
        return Response({'error': 'date_from and date_to are required'}, status=status.HTTP_400_BAD_REQUEST)
    if date_from >= date_to:
        return Response({'error': 'date_from must be before date_to'}, status=status.HTTP_400_BAD_REQUEST)
    if (date_to - date_from).days > TRENDS_MAX_DAYS:
        return Response({'error': f'Date range cannot exceed {TRENDS_MAX_DAYS} days'},
                        status=status.HTTP_400_BAD_REQUEST)
    company_id = request.query_params.get('company_id')
    if company_id and not company_id.isdigit():
        return Response({'error': 'company_id must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    cached, cache_key = get_cached_dashboard('trends', company_id=company_id or '', date_from=str(date_from),
                                             date_to=str(date_to), user=request.user.pk)
    if cached is not None:
        return Response(cached)

    orders = scoped_orders(request, Order.objects.filter(pickup_date__gte=date_from, pickup_date__lt=date_to))
    if company_id:
        orders = orders.filter(company_id=int(company_id))

    counts = dict(orders.values_list('pickup_date').annotate(count=Count('id')).order_by())
    amounts = dict(
        ChargeLine.objects.filter(side='sales', group__order__in=orders)
        .values_list('group__order__pickup_date')
        .annotate(total=Sum('amount'))
        .order_by()
    )

    points = []
    day = date_from
    while day < date_to:
        points.append({
            'date': str(day),
            'count': counts.get(day, 0),
            'amount': amounts.get(day) or Decimal('0'),
        })
        day += timedelta(days=1)

    data = {
        'date_from': str(date_from),
        'date_to': str(date_to),
        'total_count': sum(point['count'] for point in points),
        'total_amount': sum((point['amount'] for point in points), Decimal('0')),
        'points': points,
    }
    cache_dashboard(cache_key, data)
    return Response(data)

"""Utility functions for change logging, pagination and shared settings"""
import json
import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.paginator import Paginator
from django.core.serializers.json import DjangoJSONEncoder

from .models import ChangeLog, Setting

User = get_user_model()
logger = logging.getLogger(__name__)

TAX_RATE_SETTING_KEY = 'charge.default_tax_rate'


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def get_actor(request):
    """
    Resolve who is performing a request.

    The authenticated user wins. Requests relayed by internal services may
    instead carry x-user-id / x-user-name / x-user-email / x-user-access-level
    headers. Anything else is recorded as 'system'.
    """
    user = getattr(request, 'user', None) if request else None
    if user is not None and user.is_authenticated:
        return {
            'user': user,
            'name': user.display_name,
            'email': user.email or '',
            'access_level': user.access_level or '',
        }

    meta = getattr(request, 'META', {}) if request else {}
    header_id = meta.get('HTTP_X_USER_ID')
    header_user = None
    if header_id and str(header_id).isdigit():
        header_user = User.objects.filter(pk=int(header_id)).first()
    return {
        'user': header_user,
        'name': meta.get('HTTP_X_USER_NAME') or (header_user.display_name if header_user else 'system'),
        'email': meta.get('HTTP_X_USER_EMAIL') or (header_user.email if header_user else ''),
        'access_level': meta.get('HTTP_X_USER_ACCESS_LEVEL') or (header_user.access_level if header_user else ''),
    }


def make_snapshot(serializer_class, instance):
    """Serialize an instance into plain JSON types for storing in a log row"""
    if instance is None:
        return None
    data = serializer_class(instance).data
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def _lookup(data, path):
    value = data
    for part in path.split('.'):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def compute_diff(old_data, new_data, fields=None):
    """
    Field-level diff between two snapshots.

    Returns {field: {'old': ..., 'new': ...}} for every field that changed.
    Fields may be dotted paths into nested JSON (e.g. 'metadata.lat').
    Without an explicit field list every top-level key except timestamps is compared.
    """
    old_data = old_data or {}
    new_data = new_data or {}
    if fields is None:
        fields = sorted((set(old_data) | set(new_data)) - {'created_at', 'updated_at'})

    diff = {}
    for field in fields:
        old_value = _lookup(old_data, field)
        new_value = _lookup(new_data, field)
        if old_value != new_value:
            diff[field] = {'old': old_value, 'new': new_value}
    return diff


def log_change(request=None, entity_type=None, entity_id=None, change_type=None,
               old_data=None, new_data=None, reason='', fields=None):
    """
    Record a change-log row for a tracked entity

    Args:
        request: request whose user (or x-user-* headers) identifies the actor
        entity_type: one of ChangeLog.ENTITY_CHOICES
        entity_id: primary key of the changed row
        change_type: one of ChangeLog.CHANGE_TYPE_CHOICES
        old_data / new_data: JSON snapshots before and after the change
        reason: free-text reason supplied by the caller
        fields: restricts the diff to these (possibly dotted) fields
    """
    try:
        if not entity_type or entity_id is None or not change_type:
            logger.warning(f"Change log skipped: missing required fields (entity_type={entity_type}, entity_id={entity_id}, change_type={change_type})")
            return None

        if change_type == 'create':
            diff = {'all': new_data}
        elif change_type == 'delete':
            diff = {'all': old_data}
        else:
            diff = compute_diff(old_data, new_data, fields)

        actor = get_actor(request)
        return ChangeLog.objects.create(
            entity_type=entity_type,
            entity_id=str(entity_id),
            changed_by=actor['user'],
            changed_by_name=actor['name'],
            changed_by_email=actor['email'],
            changed_by_access_level=actor['access_level'],
            change_type=change_type,
            old_data=old_data,
            new_data=new_data,
            diff=diff,
            reason=reason or '',
            ip_address=get_client_ip(request),
        )
    except Exception as e:
        # Don't fail the main operation if change logging fails
        logger.error(f"Failed to create change log for {entity_type}:{entity_id}: {str(e)}")
        return None


def paginate(request, queryset, serializer_class, default_limit=20, context=None):
    """Page through a queryset with ?page=&limit= and return the list envelope"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(request.query_params.get('limit', default_limit)), 1), 200)
    except (TypeError, ValueError):
        limit = default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }


def parse_id_list(value):
    """Parse '1,2,3' (or a list) into a list of ints, ignoring junk"""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',')
    ids = []
    for item in value:
        try:
            ids.append(int(str(item).strip()))
        except (TypeError, ValueError):
            continue
    return ids


def get_default_tax_rate():
    """Tax percentage applied when a charge does not carry an explicit tax amount"""
    stored = Setting.objects.filter(key=TAX_RATE_SETTING_KEY).values_list('value', flat=True).first()
    raw = stored if stored not in (None, '') else settings.DEFAULT_TAX_RATE
    try:
        return Decimal(str(raw))
    except (InvalidOperation, TypeError):
        logger.warning(f"Invalid tax rate setting {raw!r}, using 10")
        return Decimal('10')

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404

from backend.core.serializers import UserSerializer
from backend.core.utils import log_change, make_snapshot, paginate, parse_id_list
from backend.core.views import entity_change_logs, update_allowed_fields
from .filters import CompanyFilter
from .models import Company, CompanyWarning
from .serializers import CompanySerializer, CompanyWarningSerializer

logger = logging.getLogger(__name__)

COMPANY_EDITABLE_FIELDS = [
    'name', 'business_number', 'ceo_name', 'type', 'status',
    'address_postal_code', 'address_road', 'address_detail',
    'contact_tel', 'contact_mobile', 'contact_email',
]

BATCH_ACTIONS = ('activate', 'deactivate', 'delete')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def company_list_create(request):
    """List companies or register a new one"""
    if request.method == 'GET':
        filterset = CompanyFilter(request.query_params, queryset=Company.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.prefetch_related('warnings').order_by('-created_at')
        return Response(paginate(request, queryset, CompanySerializer))

    serializer = CompanySerializer(data=request.data)
    if serializer.is_valid():
        company = serializer.save(created_by=request.user, updated_by=request.user)
        log_change(request, 'company', company.pk, 'create',
                   new_data=make_snapshot(CompanySerializer, company))
        return Response(CompanySerializer(company).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def company_detail(request, pk):
    """Retrieve, update or delete a company"""
    company = get_object_or_404(Company, pk=pk)

    if request.method == 'GET':
        return Response(CompanySerializer(company).data)

    old_data = make_snapshot(CompanySerializer, company)

    if request.method in ('PUT', 'PATCH'):
        serializer = CompanySerializer(company, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            company = serializer.save(updated_by=request.user)
            log_change(request, 'company', company.pk, 'update', old_data=old_data,
                       new_data=make_snapshot(CompanySerializer, company),
                       reason=request.data.get('reason', ''))
            return Response(CompanySerializer(company).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    try:
        with transaction.atomic():
            company_id = company.pk
            company.delete()
            log_change(request, 'company', company_id, 'delete', old_data=old_data,
                       reason=request.query_params.get('reason', ''))
    except ProtectedError:
        return Response({'error': 'Company is referenced by orders or settlements and cannot be deleted'},
                        status=status.HTTP_400_BAD_REQUEST)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def company_fields(request, pk):
    """Update an allow-listed subset of company fields"""
    company = get_object_or_404(Company, pk=pk)
    return update_allowed_fields(request, company, CompanySerializer, COMPANY_EDITABLE_FIELDS, 'company')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def company_status(request, pk):
    """Switch a company between active and inactive"""
    company = get_object_or_404(Company, pk=pk)
    new_status = request.data.get('status')

    if new_status not in dict(Company.STATUS_CHOICES):
        return Response({'error': 'status must be active or inactive'}, status=status.HTTP_400_BAD_REQUEST)
    if company.status == new_status:
        return Response({'error': f'Company is already {new_status}'}, status=status.HTTP_400_BAD_REQUEST)

    old_data = make_snapshot(CompanySerializer, company)
    company.status = new_status
    company.updated_by = request.user
    company.save(update_fields=['status', 'updated_by', 'updated_at'])
    log_change(request, 'company', company.pk, 'status_change', old_data=old_data,
               new_data=make_snapshot(CompanySerializer, company),
               reason=request.data.get('reason', ''), fields=['status'])
    return Response(CompanySerializer(company).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def company_batch(request):
    """Activate, deactivate or delete several companies at once"""
    ids = parse_id_list(request.data.get('ids'))
    action = request.data.get('action')

    if action not in BATCH_ACTIONS:
        return Response({'error': f'action must be one of {", ".join(BATCH_ACTIONS)}'}, status=status.HTTP_400_BAD_REQUEST)
    if not ids:
        return Response({'error': 'ids must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)

    companies = list(Company.objects.filter(pk__in=ids))
    found_ids = {c.pk for c in companies}
    missing = [i for i in ids if i not in found_ids]
    if missing:
        return Response({'error': 'Some companies were not found', 'ids': missing}, status=status.HTTP_404_NOT_FOUND)

    reason = request.data.get('reason', '')
    try:
        with transaction.atomic():
            for company in companies:
                old_data = make_snapshot(CompanySerializer, company)
                if action == 'delete':
                    company_id = company.pk
                    company.delete()
                    log_change(request, 'company', company_id, 'delete', old_data=old_data, reason=reason)
                    continue

                new_status = 'active' if action == 'activate' else 'inactive'
                if company.status == new_status:
                    continue
                company.status = new_status
                company.updated_by = request.user
                company.save(update_fields=['status', 'updated_by', 'updated_at'])
                log_change(request, 'company', company.pk, 'status_change', old_data=old_data,
                           new_data=make_snapshot(CompanySerializer, company), reason=reason, fields=['status'])
    except ProtectedError:
        return Response({'error': 'Some companies are referenced by orders or settlements and cannot be deleted'},
                        status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Company batch {action} applied to {len(companies)} companies by {request.user}")
    return Response({'action': action, 'processed': len(companies)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def company_users(request, pk):
    """Users that belong to a company"""
    company = get_object_or_404(Company, pk=pk)
    users = company.users.order_by('username')
    return Response(UserSerializer(users, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def company_change_logs(request, pk):
    company = get_object_or_404(Company, pk=pk)
    return entity_change_logs(request, 'company', company.pk)


# Warning views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def company_warning_list_create(request, pk):
    """List or add cautions for a company"""
    company = get_object_or_404(Company, pk=pk)

    if request.method == 'GET':
        warnings = company.warnings.order_by('sort_order', 'created_at')
        return Response(CompanyWarningSerializer(warnings, many=True).data)

    data = request.data.copy()
    if 'sort_order' not in data:
        last = company.warnings.order_by('-sort_order').first()
        data['sort_order'] = last.sort_order + 1 if last else 0
    serializer = CompanyWarningSerializer(data=data)
    if serializer.is_valid():
        warning = serializer.save(company=company)
        log_change(request, 'company_warning', warning.pk, 'create',
                   new_data=make_snapshot(CompanyWarningSerializer, warning),
                   reason=request.data.get('reason', ''))
        return Response(CompanyWarningSerializer(warning).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def company_warning_detail(request, pk, warning_pk):
    """Edit or remove a single caution"""
    warning = get_object_or_404(CompanyWarning, pk=warning_pk, company_id=pk)
    old_data = make_snapshot(CompanyWarningSerializer, warning)

    if request.method == 'PATCH':
        serializer = CompanyWarningSerializer(warning, data=request.data, partial=True)
        if serializer.is_valid():
            warning = serializer.save()
            log_change(request, 'company_warning', warning.pk, 'update', old_data=old_data,
                       new_data=make_snapshot(CompanyWarningSerializer, warning),
                       reason=request.data.get('reason', ''))
            return Response(CompanyWarningSerializer(warning).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    warning.delete()
    log_change(request, 'company_warning', warning_pk, 'delete', old_data=old_data,
               reason=request.query_params.get('reason', ''))
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def company_warning_sort(request, pk):
    """
    Reorder cautions in one go.

    Body: {"items": [{"id": 3, "sort_order": 0}, ...]}
    Every id must belong to the company, otherwise nothing is changed (404).
    """
    company = get_object_or_404(Company, pk=pk)
    items = request.data.get('items')
    if not isinstance(items, list) or not items:
        return Response({'error': 'items must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        order_map = {int(item['id']): int(item['sort_order']) for item in items}
    except (KeyError, TypeError, ValueError):
        return Response({'error': 'each item needs an integer id and sort_order'}, status=status.HTTP_400_BAD_REQUEST)

    warnings = list(company.warnings.filter(pk__in=order_map))
    if len(warnings) != len(order_map):
        found = {w.pk for w in warnings}
        return Response({'error': 'Some warnings were not found', 'ids': sorted(set(order_map) - found)},
                        status=status.HTTP_404_NOT_FOUND)

    with transaction.atomic():
        for warning in warnings:
            if warning.sort_order == order_map[warning.pk]:
                continue
            old_data = make_snapshot(CompanyWarningSerializer, warning)
            warning.sort_order = order_map[warning.pk]
            warning.save(update_fields=['sort_order', 'updated_at'])
            log_change(request, 'company_warning', warning.pk, 'update', old_data=old_data,
                       new_data=make_snapshot(CompanyWarningSerializer, warning), fields=['sort_order'])

    warnings = company.warnings.order_by('sort_order', 'created_at')
    return Response(CompanyWarningSerializer(warnings, many=True).data)

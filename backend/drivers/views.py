from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404

from backend.core.utils import log_change, make_snapshot, paginate
from backend.core.views import entity_change_logs, update_allowed_fields
from .filters import DriverFilter
from .models import Driver, DriverNote
from .serializers import DriverSerializer, DriverNoteSerializer

DRIVER_EDITABLE_FIELDS = [
    'name', 'phone_number', 'vehicle_number', 'vehicle_type', 'vehicle_weight',
    'company', 'company_type', 'business_number', 'manufacture_year', 'address_snapshot',
    'bank_code', 'bank_account_number', 'bank_account_holder',
    'is_active', 'inactive_reason',
]


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def driver_list_create(request):
    """List drivers or register a new one"""
    if request.method == 'GET':
        filterset = DriverFilter(request.query_params, queryset=Driver.objects.select_related('company'))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        ordering = request.query_params.get('ordering')
        if ordering == 'last_dispatched':
            queryset = filterset.qs.order_by('-last_dispatched_at', 'name')
        else:
            queryset = filterset.qs.order_by('-created_at')
        return Response(paginate(request, queryset, DriverSerializer))

    serializer = DriverSerializer(data=request.data)
    if serializer.is_valid():
        driver = serializer.save(created_by=request.user, updated_by=request.user)
        log_change(request, 'driver', driver.pk, 'create', new_data=make_snapshot(DriverSerializer, driver))
        return Response(DriverSerializer(driver).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def driver_detail(request, pk):
    """Retrieve, update or delete a driver"""
    driver = get_object_or_404(Driver, pk=pk)

    if request.method == 'GET':
        return Response(DriverSerializer(driver).data)

    old_data = make_snapshot(DriverSerializer, driver)

    if request.method in ('PUT', 'PATCH'):
        serializer = DriverSerializer(driver, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            driver = serializer.save(updated_by=request.user)
            change_type = 'status_change' if old_data['is_active'] != driver.is_active else 'update'
            log_change(request, 'driver', driver.pk, change_type, old_data=old_data,
                       new_data=make_snapshot(DriverSerializer, driver),
                       reason=request.data.get('reason', ''))
            return Response(DriverSerializer(driver).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        driver.delete()
    except ProtectedError:
        return Response({'error': 'Driver has dispatches or settlements and cannot be deleted. Deactivate instead.'},
                        status=status.HTTP_400_BAD_REQUEST)
    log_change(request, 'driver', pk, 'delete', old_data=old_data, reason=request.query_params.get('reason', ''))
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def driver_fields(request, pk):
    """Update an allow-listed subset of driver fields"""
    driver = get_object_or_404(Driver, pk=pk)
    return update_allowed_fields(request, driver, DriverSerializer, DRIVER_EDITABLE_FIELDS, 'driver')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def driver_change_logs(request, pk):
    driver = get_object_or_404(Driver, pk=pk)
    return entity_change_logs(request, 'driver', driver.pk)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def driver_note_list_create(request, pk):
    """Notes for a driver, newest date first"""
    driver = get_object_or_404(Driver, pk=pk)

    if request.method == 'GET':
        notes = driver.notes.order_by('-date', '-created_at')
        return Response(DriverNoteSerializer(notes, many=True).data)

    serializer = DriverNoteSerializer(data=request.data)
    if serializer.is_valid():
        note = serializer.save(driver=driver, created_by=request.user)
        return Response(DriverNoteSerializer(note).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def driver_note_detail(request, pk, note_pk):
    note = get_object_or_404(DriverNote, pk=note_pk, driver_id=pk)

    if request.method == 'PATCH':
        serializer = DriverNoteSerializer(note, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    note.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)

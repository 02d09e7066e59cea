import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import Setting, ChangeLog
from .serializers import (
    UserSerializer, UserCreateSerializer,
    SettingSerializer, ChangeLogSerializer
)
from .utils import paginate, make_snapshot, log_change

User = get_user_model()
logger = logging.getLogger(__name__)

ADMIN_LEVELS = {'platform_admin', 'broker_admin', 'shipper_admin'}
BROKER_LEVELS = {'platform_admin', 'broker_admin', 'broker_member'}
USER_EDITABLE_FIELDS = ['first_name', 'last_name', 'email', 'phone', 'access_level', 'company',
                        'department', 'position', 'status']


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['access_level'] = user.access_level
        token['company_id'] = user.company_id
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that answers 401 instead of 500 for deleted users"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.select_related('company').order_by('username')
        access_level = request.query_params.get('access_level')
        if access_level:
            users = users.filter(access_level=access_level)
        company_id = request.query_params.get('company')
        if company_id:
            users = users.filter(company_id=company_id)
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_fields(request, pk):
    """Update an allow-listed subset of user fields"""
    user = get_object_or_404(User, pk=pk)
    return update_allowed_fields(request, user, UserSerializer, USER_EDITABLE_FIELDS, 'user')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_status(request, pk):
    """Activate, deactivate or lock a user; only active users can sign in"""
    user = get_object_or_404(User, pk=pk)
    new_status = request.data.get('status')

    if new_status not in dict(User.STATUS_CHOICES):
        return Response({'error': 'status must be active, inactive or locked'}, status=status.HTTP_400_BAD_REQUEST)
    if user.status == new_status:
        return Response({'message': f'User is already {new_status}', 'user': UserSerializer(user).data})

    old_data = make_snapshot(UserSerializer, user)
    user.status = new_status
    user.is_active = new_status == 'active'
    user.save(update_fields=['status', 'is_active', 'updated_at'])
    log_change(request, 'user', user.pk, 'status_change', old_data=old_data,
               new_data=make_snapshot(UserSerializer, user),
               reason=request.data.get('reason', ''), fields=['status', 'is_active'])
    logger.info(f"User {user.pk} status changed to {new_status} by {request.user.username}")
    return Response(UserSerializer(user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_change_logs(request, pk):
    user = get_object_or_404(User, pk=pk)
    return entity_change_logs(request, 'user', user.pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with the permissions the front end gates pages on"""
    user = request.user
    user_data = UserSerializer(user).data

    is_admin = user.is_superuser or user.access_level in ADMIN_LEVELS
    is_broker = user.is_superuser or user.access_level in BROKER_LEVELS
    user_data['is_admin'] = is_admin
    user_data['can_access_dashboard'] = user.access_level != 'guest' or user.is_superuser
    user_data['can_access_settlement'] = is_broker
    user_data['can_dispatch'] = is_broker
    user_data['can_manage_companies'] = is_admin
    return Response(user_data)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        serializer = SettingSerializer(Setting.objects.order_by('key'), many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        return Response(SettingSerializer(setting).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


def update_allowed_fields(request, instance, serializer_class, allowed_fields, entity_type):
    """
    Shared handler for PATCH .../fields/ endpoints.

    Body: {"fields": {...}, "reason": "..."}. Keys outside allowed_fields are
    rejected with 400. Valid updates are saved and logged as 'update'.
    """
    fields = request.data.get('fields')
    if not isinstance(fields, dict) or not fields:
        return Response({'error': 'fields must be a non-empty object'}, status=status.HTTP_400_BAD_REQUEST)

    invalid_fields = sorted(set(fields) - set(allowed_fields))
    if invalid_fields:
        return Response({'error': 'Some fields cannot be updated', 'fields': invalid_fields},
                        status=status.HTTP_400_BAD_REQUEST)

    old_data = make_snapshot(serializer_class, instance)
    serializer = serializer_class(instance, data=fields, partial=True, context={'request': request})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    save_kwargs = {}
    if hasattr(instance, 'updated_by_id'):
        save_kwargs.setdefault('updated_by', request.user)
    updated = serializer.save(**save_kwargs)

    log_change(request, entity_type, updated.pk, 'update',
               old_data=old_data, new_data=make_snapshot(serializer_class, updated),
               reason=request.data.get('reason', ''), fields=sorted(fields))
    return Response(serializer_class(updated, context={'request': request}).data)


def entity_change_logs(request, entity_type, entity_id):
    """Paginated change-log response for one tracked entity"""
    queryset = ChangeLog.objects.filter(entity_type=entity_type, entity_id=str(entity_id))
    change_type = request.query_params.get('change_type')
    if change_type:
        queryset = queryset.filter(change_type=change_type)
    return Response(paginate(request, queryset.order_by('-created_at', '-id'), ChangeLogSerializer))


# ChangeLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def change_log_list(request):
    """List change logs across entities with filtering"""
    queryset = ChangeLog.objects.all()

    # Non-admins only see their own changes
    if not (request.user.is_staff or request.user.access_level in ADMIN_LEVELS):
        queryset = queryset.filter(changed_by=request.user)

    entity_type = request.query_params.get('entity_type')
    if entity_type:
        queryset = queryset.filter(entity_type=entity_type)

    entity_id = request.query_params.get('entity_id')
    if entity_id:
        queryset = queryset.filter(entity_id=entity_id)

    change_type = request.query_params.get('change_type')
    if change_type:
        queryset = queryset.filter(change_type=change_type)

    date_from = request.query_params.get('date_from')
    date_to = request.query_params.get('date_to')
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at', '-id')
    return Response(paginate(request, queryset, ChangeLogSerializer, default_limit=50))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def change_log_detail(request, pk):
    """Retrieve a change log"""
    change_log = get_object_or_404(ChangeLog, pk=pk)

    if not (request.user.is_staff or request.user.access_level in ADMIN_LEVELS) and change_log.changed_by_id != request.user.id:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    return Response(ChangeLogSerializer(change_log).data)

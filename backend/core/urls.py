from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    user_list_create, user_detail, user_fields, user_status, user_change_logs,
    setting_list_create, setting_detail,
    change_log_list, change_log_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('users/<int:pk>/fields/', user_fields, name='user-fields'),
    path('users/<int:pk>/status/', user_status, name='user-status'),
    path('users/<int:pk>/change-logs/', user_change_logs, name='user-change-logs'),

    # Setting endpoints
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/<int:pk>/', setting_detail, name='setting-detail'),

    # Change log endpoints
    path('change-logs/', change_log_list, name='change-log-list'),
    path('change-logs/<int:pk>/', change_log_detail, name='change-log-detail'),
]

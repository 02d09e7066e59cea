from django.urls import path
from .views import (
    company_list_create, company_detail, company_fields, company_status,
    company_batch, company_users, company_change_logs,
    company_warning_list_create, company_warning_detail, company_warning_sort,
)

urlpatterns = [
    path('companies/', company_list_create, name='company-list-create'),
    path('companies/batch/', company_batch, name='company-batch'),
    path('companies/<int:pk>/', company_detail, name='company-detail'),
    path('companies/<int:pk>/fields/', company_fields, name='company-fields'),
    path('companies/<int:pk>/status/', company_status, name='company-status'),
    path('companies/<int:pk>/users/', company_users, name='company-users'),
    path('companies/<int:pk>/change-logs/', company_change_logs, name='company-change-logs'),
    path('companies/<int:pk>/warnings/', company_warning_list_create, name='company-warning-list-create'),
    path('companies/<int:pk>/warnings/sort/', company_warning_sort, name='company-warning-sort'),
    path('companies/<int:pk>/warnings/<int:warning_pk>/', company_warning_detail, name='company-warning-detail'),
]

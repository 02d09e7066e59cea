from django.urls import path
from .views import (
    address_list_create, address_detail, address_batch,
    address_frequent, address_recent, address_change_logs,
)

urlpatterns = [
    path('addresses/', address_list_create, name='address-list-create'),
    path('addresses/batch/', address_batch, name='address-batch'),
    path('addresses/frequent/', address_frequent, name='address-frequent'),
    path('addresses/recent/', address_recent, name='address-recent'),
    path('addresses/<int:pk>/', address_detail, name='address-detail'),
    path('addresses/<int:pk>/change-logs/', address_change_logs, name='address-change-logs'),
]

from django.urls import path
from .views import (
    order_list_create, order_detail, order_fields, order_status, order_cancel,
    order_batch, order_validate, order_change_logs, order_dispatch, dispatch_fields, dispatch_close,
)

urlpatterns = [
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/batch/', order_batch, name='order-batch'),
    path('orders/validate/', order_validate, name='order-validate'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/fields/', order_fields, name='order-fields'),
    path('orders/<int:pk>/status/', order_status, name='order-status'),
    path('orders/<int:pk>/cancel/', order_cancel, name='order-cancel'),
    path('orders/<int:pk>/change-logs/', order_change_logs, name='order-change-logs'),
    path('orders/<int:pk>/dispatch/', order_dispatch, name='order-dispatch'),
    path('dispatches/<int:pk>/fields/', dispatch_fields, name='dispatch-fields'),
    path('dispatches/<int:pk>/close/', dispatch_close, name='dispatch-close'),
]

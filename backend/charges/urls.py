from django.urls import path
from .views import (
    charge_group_list_create, charge_group_detail, charge_line_list_create, charge_line_detail,
    settlement_list_create, settlement_detail, settlement_create, sales_summary, settlement_waiting,
    bundle_list_create, bundle_detail, bundle_adjustment_list_create, bundle_adjustment_detail,
    item_adjustment_list_create, item_adjustment_detail, bundle_order_list,
)

SALES = {'kind': 'sales'}
PURCHASE = {'kind': 'purchase'}

urlpatterns = [
    path('charges/groups/', charge_group_list_create, name='charge-group-list-create'),
    path('charges/groups/<int:pk>/', charge_group_detail, name='charge-group-detail'),
    path('charges/groups/<int:group_pk>/lines/', charge_line_list_create, name='charge-line-list-create'),
    path('charges/lines/<int:pk>/', charge_line_detail, name='charge-line-detail'),

    path('charges/settlement/', settlement_create, name='settlement-create'),
    path('charges/sales/', settlement_list_create, SALES, name='order-sale-list-create'),
    path('charges/sales/summary/', sales_summary, name='order-sale-summary'),
    path('charges/sales/waiting/', settlement_waiting, SALES, name='order-sale-waiting'),
    path('charges/sales/<int:pk>/', settlement_detail, SALES, name='order-sale-detail'),
    path('charges/purchases/', settlement_list_create, PURCHASE, name='order-purchase-list-create'),
    path('charges/purchases/waiting/', settlement_waiting, PURCHASE, name='order-purchase-waiting'),
    path('charges/purchases/<int:pk>/', settlement_detail, PURCHASE, name='order-purchase-detail'),

    path('charges/sales-bundles/', bundle_list_create, SALES, name='sales-bundle-list-create'),
    path('charges/sales-bundles/<int:pk>/', bundle_detail, SALES, name='sales-bundle-detail'),
    path('charges/sales-bundles/<int:pk>/adjustments/', bundle_adjustment_list_create, SALES,
         name='sales-bundle-adjustment-list-create'),
    path('charges/sales-bundles/<int:pk>/adjustments/<int:adjustment_pk>/', bundle_adjustment_detail, SALES,
         name='sales-bundle-adjustment-detail'),
    path('charges/sales-bundles/<int:pk>/order-list/', bundle_order_list, SALES, name='sales-bundle-order-list'),
    path('charges/sales-bundles/items/<int:item_pk>/adjustments/', item_adjustment_list_create, SALES,
         name='sales-item-adjustment-list-create'),
    path('charges/sales-bundles/items/<int:item_pk>/adjustments/<int:adjustment_pk>/', item_adjustment_detail, SALES,
         name='sales-item-adjustment-detail'),

    path('charges/purchase-bundles/', bundle_list_create, PURCHASE, name='purchase-bundle-list-create'),
    path('charges/purchase-bundles/<int:pk>/', bundle_detail, PURCHASE, name='purchase-bundle-detail'),
    path('charges/purchase-bundles/<int:pk>/adjustments/', bundle_adjustment_list_create, PURCHASE,
         name='purchase-bundle-adjustment-list-create'),
    path('charges/purchase-bundles/<int:pk>/adjustments/<int:adjustment_pk>/', bundle_adjustment_detail, PURCHASE,
         name='purchase-bundle-adjustment-detail'),
    path('charges/purchase-bundles/<int:pk>/order-list/', bundle_order_list, PURCHASE,
         name='purchase-bundle-order-list'),
    path('charges/purchase-bundles/items/<int:item_pk>/adjustments/', item_adjustment_list_create, PURCHASE,
         name='purchase-item-adjustment-list-create'),
    path('charges/purchase-bundles/items/<int:item_pk>/adjustments/<int:adjustment_pk>/', item_adjustment_detail,
         PURCHASE, name='purchase-item-adjustment-detail'),
]

import django_filters
from django.db.models import Q
from .models import (
    BUNDLE_STATUS_CHOICES, SETTLEMENT_STATUS_CHOICES, OrderSale, OrderPurchase, SalesBundle, PurchaseBundle,
)


class SettlementRecordFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.MultipleChoiceFilter(choices=SETTLEMENT_STATUS_CHOICES)
    order = django_filters.NumberFilter(field_name='order_id')
    company = django_filters.NumberFilter(field_name='company_id')
    date_from = django_filters.DateFilter(field_name='order__pickup_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='order__pickup_date', lookup_expr='lte')
    bundled = django_filters.BooleanFilter(field_name='bundle_item', lookup_expr='isnull', exclude=True)

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(invoice_number__icontains=value) |
            Q(order__cargo_name__icontains=value) |
            Q(company__name__icontains=value)
        )


class OrderSaleFilter(SettlementRecordFilter):
    class Meta:
        model = OrderSale
        fields = ['search', 'status', 'order', 'company', 'date_from', 'date_to', 'bundled']


class OrderPurchaseFilter(SettlementRecordFilter):
    driver = django_filters.NumberFilter(field_name='driver_id')

    class Meta:
        model = OrderPurchase
        fields = ['search', 'status', 'order', 'company', 'driver', 'date_from', 'date_to', 'bundled']


class BundleFilter(django_filters.FilterSet):
    """Bundle list filters; the date range matches bundles whose period overlaps it"""
    status = django_filters.MultipleChoiceFilter(choices=BUNDLE_STATUS_CHOICES)
    company = django_filters.NumberFilter(field_name='company_id')
    manager = django_filters.NumberFilter(field_name='manager_id')
    date_from = django_filters.DateFilter(field_name='period_to', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='period_from', lookup_expr='lte')


class SalesBundleFilter(BundleFilter):
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = SalesBundle
        fields = ['search', 'status', 'company', 'manager', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(invoice_no__icontains=value) | Q(company__name__icontains=value))


class PurchaseBundleFilter(BundleFilter):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    driver = django_filters.NumberFilter(field_name='driver_id')

    class Meta:
        model = PurchaseBundle
        fields = ['search', 'status', 'company', 'driver', 'manager', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(payment_no__icontains=value) |
            Q(company__name__icontains=value) |
            Q(driver__name__icontains=value)
        )

import django_filters
from django.db.models import Q
from .models import Order, FLOW_STATUS_CHOICES


class OrderFilter(django_filters.FilterSet):
    """Order list filters; date range applies to the pickup date"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    company = django_filters.NumberFilter(field_name='company_id')
    flow_status = django_filters.MultipleChoiceFilter(choices=FLOW_STATUS_CHOICES)
    is_canceled = django_filters.BooleanFilter()
    date_from = django_filters.DateFilter(field_name='pickup_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='pickup_date', lookup_expr='lte')
    driver = django_filters.NumberFilter(field_name='dispatch__driver_id')
    has_dispatch = django_filters.BooleanFilter(field_name='dispatch', lookup_expr='isnull', exclude=True)

    class Meta:
        model = Order
        fields = ['search', 'company', 'flow_status', 'is_canceled', 'date_from', 'date_to', 'driver', 'has_dispatch']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        query = (
            Q(cargo_name__icontains=value) |
            Q(pickup_name__icontains=value) |
            Q(delivery_name__icontains=value) |
            Q(company__name__icontains=value) |
            Q(dispatch__vehicle_number__icontains=value) |
            Q(dispatch__driver__name__icontains=value)
        )
        if value.isdigit():
            query |= Q(pk=int(value))
        return queryset.filter(query).distinct()

import django_filters
from django.db.models import Q
from .models import Driver, VEHICLE_TYPE_CHOICES, VEHICLE_WEIGHT_CHOICES


class DriverFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    vehicle_type = django_filters.MultipleChoiceFilter(choices=VEHICLE_TYPE_CHOICES)
    vehicle_weight = django_filters.MultipleChoiceFilter(choices=VEHICLE_WEIGHT_CHOICES)
    is_active = django_filters.BooleanFilter()
    company = django_filters.NumberFilter(field_name='company_id')

    class Meta:
        model = Driver
        fields = ['search', 'vehicle_type', 'vehicle_weight', 'is_active', 'company']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(phone_number__icontains=value) |
            Q(vehicle_number__icontains=value)
        )

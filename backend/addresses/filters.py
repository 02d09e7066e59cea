import django_filters
from django.db.models import Q
from .models import Address


class AddressFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    type = django_filters.ChoiceFilter(choices=Address.TYPE_CHOICES)
    is_frequent = django_filters.BooleanFilter()
    company = django_filters.NumberFilter(field_name='company_id')

    class Meta:
        model = Address
        fields = ['search', 'type', 'is_frequent', 'company']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(road_address__icontains=value) |
            Q(jibun_address__icontains=value) |
            Q(contact_name__icontains=value)
        )

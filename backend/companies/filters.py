import django_filters
from django.db.models import Q
from .models import Company


class CompanyFilter(django_filters.FilterSet):
    """Filter companies by type, status and free-text search"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    type = django_filters.ChoiceFilter(choices=Company.TYPE_CHOICES)
    status = django_filters.ChoiceFilter(choices=Company.STATUS_CHOICES)

    class Meta:
        model = Company
        fields = ['search', 'type', 'status']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(business_number__icontains=value) |
            Q(ceo_name__icontains=value) |
            Q(contact_tel__icontains=value) |
            Q(contact_mobile__icontains=value)
        )

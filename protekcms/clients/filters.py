import django_filters
from django.db.models import Q

from protekcms.core.utils import casefold_matches
from .models import Client


class ClientFilter(django_filters.FilterSet):
    """Filter for the dashboard client list"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    profile_type = django_filters.CharFilter(method='filter_profile_type', label='Profile type')
    is_verified = django_filters.BooleanFilter(field_name='is_verified')
    status = django_filters.CharFilter(method='filter_status', label='Status')

    class Meta:
        model = Client
        fields = ['search', 'profile_type', 'is_verified', 'status']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on first/last name, phone or email"""
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(first_name__icontains=value) |
            Q(last_name__icontains=value) |
            Q(phone__icontains=value) |
            Q(email__icontains=value)
        )

    def filter_profile_type(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(pk__in=casefold_matches(queryset, 'profile_type', value))

    def filter_status(self, queryset, name, value):
        value = value.strip().upper()
        if not value or value == 'ALL':
            return queryset
        return queryset.filter(status=value)

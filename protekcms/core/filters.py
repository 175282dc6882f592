import django_filters
from django.db.models import Q
from .models import AuditLog


class AuditLogFilter(django_filters.FilterSet):
    user = django_filters.NumberFilter(field_name='user_id')
    action = django_filters.CharFilter(field_name='action', lookup_expr='iexact')
    target_type = django_filters.CharFilter(field_name='target_type')
    target_id = django_filters.CharFilter(field_name='target_id')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = AuditLog
        fields = ['user', 'action', 'target_type', 'target_id', 'date_from', 'date_to', 'search']

    def filter_search(self, queryset, name, value):
        """Match on details text or on the acting user's name"""
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(details__icontains=value) |
            Q(user__name__icontains=value) |
            Q(user__username__icontains=value) |
            Q(user__email__icontains=value)
        )

import django_filters
from django.db.models import Q
from .models import Media


class MediaFilter(django_filters.FilterSet):
    type = django_filters.CharFilter(field_name='type')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Media
        fields = ['type', 'search']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(alt__icontains=value))

import django_filters
from django.db.models import Q
from .models import Category, Product
from .utils import descendant_ids


class ProductFilter(django_filters.FilterSet):
    """Filter for the dashboard product list"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(method='filter_category', label='Category')
    stock_filter = django_filters.CharFilter(method='filter_stock', label='Stock')
    visibility_filter = django_filters.CharFilter(method='filter_visibility', label='Visibility')

    class Meta:
        model = Product
        fields = ['search', 'category', 'stock_filter', 'visibility_filter']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on name, SKU or description"""
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(sku__icontains=value) |
            Q(description__icontains=value)
        )

    def filter_category(self, queryset, name, value):
        """
        Products of a category. When the category has
        include_subcategory_products set, products of all its descendants
        are listed as well.
        """
        if value is None:
            return queryset
        category_id = int(value)
        category = Category.objects.filter(pk=category_id).only('include_subcategory_products').first()
        if category is not None and category.include_subcategory_products:
            return queryset.filter(category_id__in=[category_id, *descendant_ids(category_id)])
        return queryset.filter(category_id=category_id)

    def filter_stock(self, queryset, name, value):
        value = value.strip().lower()
        if value in ('in_stock', 'instock'):
            return queryset.filter(stock__gt=0)
        if value in ('out_of_stock', 'outofstock'):
            return queryset.filter(stock__lte=0)
        return queryset

    def filter_visibility(self, queryset, name, value):
        value = value.strip().lower()
        if value == 'visible':
            return queryset.filter(is_visible=True)
        if value == 'hidden':
            return queryset.filter(is_visible=False)
        return queryset


class PublicProductFilter(ProductFilter):
    """
    Filter for the storefront product list. Accepts the category as
    `categoryId`; `includeSubcategories=true` lists products of all
    descendant categories regardless of the category's own flag.
    """

    categoryId = django_filters.NumberFilter(method='filter_category', label='Category')
    includeSubcategories = django_filters.BooleanFilter(method='filter_noop', label='Include subcategories')

    class Meta:
        model = Product
        fields = ['search', 'category', 'categoryId', 'includeSubcategories']

    def filter_noop(self, queryset, name, value):
        return queryset

    def filter_category(self, queryset, name, value):
        if value is None:
            return queryset
        if self.form.cleaned_data.get('includeSubcategories'):
            category_id = int(value)
            return queryset.filter(category_id__in=[category_id, *descendant_ids(category_id)])
        return super().filter_category(queryset, name, value)

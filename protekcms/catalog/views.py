from django.db.models import Count
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from protekcms.core.exceptions import ServiceError
from protekcms.core.serializers import AuditLogSerializer
from protekcms.core.utils import paginate_params, paginate_queryset
from . import services
from .filters import ProductFilter, PublicProductFilter
from .models import Category, Product
from .serializers import (
    CategorySerializer, CategoryDetailSerializer, ProductSerializer, ProductListSerializer,
    PublicProductSerializer, PublicProductListSerializer,
)
from .utils import parse_bool


def _error(e):
    return Response({'error': e.detail}, status=e.status_code)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """Category tree or create a new category"""
    if request.method == 'GET':
        include_hidden = parse_bool(request.query_params.get('include_hidden', False))
        return Response(services.category_tree(include_hidden=include_hidden))
    else:
        try:
            category = services.create_category(request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def category_flat_list(request):
    """All categories as a flat list (for selects)"""
    categories = Category.objects.annotate(products_count=Count('products')).order_by('level', 'order', 'name')
    if not parse_bool(request.query_params.get('include_hidden', True)):
        categories = categories.filter(is_visible=True)
    return Response(CategorySerializer(categories, many=True).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategoryDetailSerializer(category).data)
    elif request.method == 'PATCH':
        try:
            category = services.update_category(category, request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(CategorySerializer(category).data)
    else:  # DELETE
        services.delete_category(category, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def category_toggle_include_subcategories(request, pk):
    category = get_object_or_404(Category, pk=pk)
    category = services.toggle_include_subcategories(category, request=request)
    return Response(CategorySerializer(category).data)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products with filtering and pagination, or create a product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category').prefetch_related('images')
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

        page, limit = paginate_params(request, default_limit=20)
        items, pagination = paginate_queryset(filterset.qs, page, limit)
        return Response({
            'products': ProductListSerializer(items, many=True).data,
            'pagination': pagination,
        })
    else:
        try:
            product = services.create_product(request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    product = get_object_or_404(
        Product.objects.select_related('category').prefetch_related('images', 'characteristics', 'options__values'),
        pk=pk,
    )

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method == 'PATCH':
        try:
            product = services.update_product(product, request.data, request=request)
        except ServiceError as e:
            return _error(e)
        product = Product.objects.prefetch_related('images', 'characteristics', 'options__values').get(pk=product.pk)
        return Response(ProductSerializer(product).data)
    else:  # DELETE
        services.delete_product(product, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def product_bulk_update(request):
    updated = services.bulk_update_products(request.data, request=request)
    return Response({'success': True, 'updated': updated})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def product_bulk_delete(request):
    deleted = services.bulk_delete_products(request.data, request=request)
    return Response({'success': True, 'deleted': deleted})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_history(request, pk):
    """Audit entries that target this product"""
    product = get_object_or_404(Product, pk=pk)
    return Response(AuditLogSerializer(services.product_history(product), many=True).data)


# Import / export
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def catalog_import(request):
    rows = request.data.get('products') if isinstance(request.data, dict) else request.data
    if not isinstance(rows, list):
        return Response({'error': 'Expected a list of products'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(services.import_products(rows, request=request))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def catalog_export(request):
    content, filename, content_type = services.export_products(request.data, request=request)
    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


# Storefront views
def _public_products():
    """Products a site visitor may see"""
    return (Product.objects.filter(is_visible=True)
            .select_related('category')
            .prefetch_related('images', 'characteristics', 'options__values'))


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_list(request):
    """Visible products in stock, filtered by category and search"""
    filterset = PublicProductFilter(request.query_params, queryset=_public_products().filter(stock__gt=0))
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    page, limit = paginate_params(request, default_limit=20)
    items, pagination = paginate_queryset(filterset.qs, page, limit)
    return Response({
        'products': PublicProductListSerializer(items, many=True).data,
        'pagination': pagination,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_detail(request, pk):
    product = get_object_or_404(_public_products(), pk=pk)
    return Response(PublicProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_by_slug(request, slug):
    product = get_object_or_404(_public_products(), slug=slug)
    return Response(PublicProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_related(request, pk):
    """Other visible products in stock from the same category"""
    product = get_object_or_404(Product.objects.filter(is_visible=True), pk=pk)
    related = Product.objects.none()
    if product.category_id is not None:
        _, limit = paginate_params(request, default_limit=8, max_limit=50)
        related = (_public_products()
                   .filter(category_id=product.category_id, stock__gt=0)
                   .exclude(pk=product.pk)[:limit])
    return Response({'related': PublicProductListSerializer(related, many=True).data})

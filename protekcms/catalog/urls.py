from django.urls import path
from .views import (
    category_list_create, category_flat_list, category_detail, category_toggle_include_subcategories,
    product_list_create, product_detail, product_bulk_update, product_bulk_delete, product_history,
    catalog_import, catalog_export,
    public_product_list, public_product_detail, public_product_by_slug, public_product_related,
)

urlpatterns = [
    # Category endpoints
    path('catalog/categories/', category_list_create, name='category-list-create'),
    path('catalog/categories/all/', category_flat_list, name='category-flat-list'),
    path('catalog/categories/<int:pk>/', category_detail, name='category-detail'),
    path('catalog/categories/<int:pk>/toggle-include-subcategories/', category_toggle_include_subcategories,
         name='category-toggle-include-subcategories'),

    # Product endpoints
    path('catalog/products/', product_list_create, name='product-list-create'),
    path('catalog/products/bulk-update/', product_bulk_update, name='product-bulk-update'),
    path('catalog/products/bulk-delete/', product_bulk_delete, name='product-bulk-delete'),
    path('catalog/products/<int:pk>/', product_detail, name='product-detail'),
    path('catalog/products/<int:pk>/history/', product_history, name='product-history'),

    # Import / export
    path('catalog/import/', catalog_import, name='catalog-import'),
    path('catalog/export/', catalog_export, name='catalog-export'),

    # Storefront endpoints
    path('public/catalog/products/', public_product_list, name='public-product-list'),
    path('public/catalog/products/<int:pk>/', public_product_detail, name='public-product-detail'),
    path('public/catalog/products/slug/<slug:slug>/', public_product_by_slug, name='public-product-by-slug'),
    path('public/catalog/products/related/<int:pk>/', public_product_related,
         name='public-product-related'),
]

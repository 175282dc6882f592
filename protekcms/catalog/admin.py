from django.contrib import admin
from .models import Category, Product, ProductImage, ProductCharacteristic, ProductOption, ProductOptionValue


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'parent', 'level', 'order', 'is_visible', 'include_subcategory_products']
    list_filter = ['is_visible', 'level']
    search_fields = ['name', 'slug']
    readonly_fields = ['level', 'created_at', 'updated_at']


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


class ProductCharacteristicInline(admin.TabularInline):
    model = ProductCharacteristic
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'wholesale_price', 'retail_price', 'stock', 'is_visible']
    list_filter = ['is_visible', 'category']
    search_fields = ['name', 'sku', 'description']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProductImageInline, ProductCharacteristicInline]


class ProductOptionValueInline(admin.TabularInline):
    model = ProductOptionValue
    extra = 0


@admin.register(ProductOption)
class ProductOptionAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'product']
    search_fields = ['name', 'product__name', 'product__sku']
    inlines = [ProductOptionValueInline]

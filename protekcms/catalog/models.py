from django.core.validators import MinValueValidator
from django.db import models


class Category(models.Model):
    """Catalog category; roots have level 0, children parent.level + 1"""
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='subcategories')
    level = models.PositiveIntegerField(default=0)
    order = models.IntegerField(default=0)
    is_visible = models.BooleanField(default=True)
    include_subcategory_products = models.BooleanField(
        default=False,
        help_text="List products of descendant categories under this category",
    )
    image_url = models.CharField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        ordering = ['level', 'order', 'name']
        verbose_name_plural = 'categories'


class Product(models.Model):
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    sku = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    wholesale_price = models.DecimalField(max_digits=12, decimal_places=2, default=0,
                                          validators=[MinValueValidator(0)])
    retail_price = models.DecimalField(max_digits=12, decimal_places=2, default=0,
                                       validators=[MinValueValidator(0)])
    stock = models.IntegerField(default=0)
    is_visible = models.BooleanField(default=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    class Meta:
        db_table = 'products'
        ordering = ['-created_at', '-id']


class ProductImage(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='images')
    url = models.CharField(max_length=500)
    alt = models.CharField(max_length=255, blank=True, null=True)
    order = models.IntegerField(default=0)

    class Meta:
        db_table = 'product_images'
        ordering = ['order', 'id']


class ProductCharacteristic(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='characteristics')
    name = models.CharField(max_length=255)
    value = models.CharField(max_length=500)

    class Meta:
        db_table = 'product_characteristics'
        ordering = ['id']


class ProductOption(models.Model):
    """Selectable option of a product (size, color, ...) with priced values"""
    TYPE_SINGLE = 'single'
    TYPE_MULTIPLE = 'multiple'
    TYPE_CHOICES = [
        (TYPE_SINGLE, 'Single choice'),
        (TYPE_MULTIPLE, 'Multiple choice'),
    ]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='options')
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_SINGLE)

    class Meta:
        db_table = 'product_options'
        ordering = ['id']


class ProductOptionValue(models.Model):
    option = models.ForeignKey(ProductOption, on_delete=models.CASCADE, related_name='values')
    value = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        db_table = 'product_option_values'
        ordering = ['id']

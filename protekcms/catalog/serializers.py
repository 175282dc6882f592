from rest_framework import serializers
from .models import Category, Product, ProductImage, ProductCharacteristic, ProductOption, ProductOptionValue

IMAGE_URL_PREFIXES = ('http://', 'https://', '/uploads/', '/media/')


class CategorySerializer(serializers.ModelSerializer):
    products_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'parent', 'level', 'order', 'is_visible',
                  'include_subcategory_products', 'image_url', 'products_count', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_products_count(self, obj):
        count = getattr(obj, 'products_count', None)
        return count if count is not None else obj.products.count()


class CategoryDetailSerializer(CategorySerializer):
    subcategories = serializers.SerializerMethodField()

    class Meta(CategorySerializer.Meta):
        fields = CategorySerializer.Meta.fields + ['subcategories']
        read_only_fields = fields

    def get_subcategories(self, obj):
        return CategorySerializer(obj.subcategories.order_by('order', 'name'), many=True).data


class CategoryWriteSerializer(serializers.ModelSerializer):
    parent = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), required=False, allow_null=True)

    class Meta:
        model = Category
        fields = ['name', 'description', 'parent', 'order', 'is_visible',
                  'include_subcategory_products', 'image_url']
        extra_kwargs = {
            'description': {'required': False, 'allow_blank': True, 'allow_null': True},
            'image_url': {'required': False, 'allow_blank': True, 'allow_null': True},
            'order': {'required': False},
        }


class CategoryBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'parent']


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ['id', 'url', 'alt', 'order']
        read_only_fields = ['id']
        extra_kwargs = {
            'alt': {'required': False, 'allow_blank': True, 'allow_null': True},
            'order': {'required': False},
        }

    def validate_url(self, value):
        if not value.startswith(IMAGE_URL_PREFIXES):
            raise serializers.ValidationError(
                'Image URL must start with http://, https://, /uploads/ or /media/'
            )
        return value


class ProductCharacteristicSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductCharacteristic
        fields = ['id', 'name', 'value']
        read_only_fields = ['id']


class ProductOptionValueSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductOptionValue
        fields = ['id', 'value', 'price']
        read_only_fields = ['id']
        extra_kwargs = {'price': {'required': False}}


class ProductOptionSerializer(serializers.ModelSerializer):
    values = ProductOptionValueSerializer(many=True, required=False)

    class Meta:
        model = ProductOption
        fields = ['id', 'name', 'type', 'values']
        read_only_fields = ['id']
        extra_kwargs = {'type': {'required': False}}


class ProductListSerializer(serializers.ModelSerializer):
    category = CategoryBriefSerializer(read_only=True)
    images = ProductImageSerializer(many=True, read_only=True)
    main_image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'sku', 'wholesale_price', 'retail_price', 'stock',
                  'is_visible', 'category', 'images', 'main_image', 'created_at', 'updated_at']

    def get_main_image(self, obj):
        images = list(obj.images.all())
        return images[0].url if images else None


class ProductSerializer(ProductListSerializer):
    characteristics = ProductCharacteristicSerializer(many=True, read_only=True)
    options = ProductOptionSerializer(many=True, read_only=True)

    class Meta(ProductListSerializer.Meta):
        fields = ['id', 'name', 'slug', 'sku', 'description', 'wholesale_price', 'retail_price', 'stock',
                  'is_visible', 'category', 'images', 'main_image', 'characteristics', 'options',
                  'created_at', 'updated_at']


class PublicProductListSerializer(ProductListSerializer):
    """Storefront view of a product, without wholesale pricing"""

    class Meta(ProductListSerializer.Meta):
        fields = ['id', 'name', 'slug', 'sku', 'retail_price', 'stock', 'category', 'images', 'main_image']


class PublicProductSerializer(ProductSerializer):
    class Meta(ProductSerializer.Meta):
        fields = ['id', 'name', 'slug', 'sku', 'description', 'retail_price', 'stock', 'category',
                  'images', 'main_image', 'characteristics', 'options']


class ProductWriteSerializer(serializers.ModelSerializer):
    # SKU uniqueness is checked by the service
    sku = serializers.CharField(max_length=100)
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), required=False, allow_null=True)
    wholesale_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    retail_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    images = ProductImageSerializer(many=True, required=False)
    characteristics = ProductCharacteristicSerializer(many=True, required=False)
    options = ProductOptionSerializer(many=True, required=False)

    class Meta:
        model = Product
        fields = ['name', 'sku', 'description', 'wholesale_price', 'retail_price', 'stock',
                  'is_visible', 'category', 'images', 'characteristics', 'options']
        extra_kwargs = {
            'description': {'required': False, 'allow_blank': True, 'allow_null': True},
        }


class BulkProductIdsSerializer(serializers.Serializer):
    product_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class BulkUpdateDataSerializer(serializers.Serializer):
    is_visible = serializers.BooleanField(required=False)
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), required=False, allow_null=True)
    stock = serializers.IntegerField(required=False)
    wholesale_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    retail_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No fields to update')
        return attrs


class BulkUpdateSerializer(BulkProductIdsSerializer):
    data = BulkUpdateDataSerializer()


class ProductImportRowSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    sku = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    wholesale_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    retail_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    stock = serializers.IntegerField(required=False, default=0)
    category_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_visible = serializers.BooleanField(required=False, default=True)
    characteristics = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)


class ExportOptionsSerializer(serializers.Serializer):
    FORMAT_CHOICES = ['csv', 'excel', 'json']

    format = serializers.ChoiceField(choices=FORMAT_CHOICES)
    include_images = serializers.BooleanField(required=False, default=True)
    include_categories = serializers.BooleanField(required=False, default=True)
    include_characteristics = serializers.BooleanField(required=False, default=True)
    include_options = serializers.BooleanField(required=False, default=True)
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), required=False, allow_null=True)

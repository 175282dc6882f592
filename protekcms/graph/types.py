"""GraphQL object types mapped onto the Django models"""
import graphene
from graphene.types.generic import GenericScalar
from graphene_django import DjangoObjectType

from protekcms.catalog.models import (
    Category, Product, ProductImage, ProductCharacteristic, ProductOption, ProductOptionValue,
)
from protekcms.clients.models import (
    Client, ClientProfile, Discount, LegalEntity, Requisite, Contract,
    ClientContact, Vehicle, DeliveryAddress,
)
from protekcms.content.models import Page, PageSection
from protekcms.content.sections import section_label
from protekcms.core.models import User, AuditLog
from protekcms.media_library.models import Media


def _absolute(info, url):
    request = info.context
    return request.build_absolute_uri(url) if request is not None else url


class PaginationType(graphene.ObjectType):
    total = graphene.Int(required=True)
    page = graphene.Int(required=True)
    limit = graphene.Int(required=True)
    pages = graphene.Int(required=True)


# Accounts
class UserType(DjangoObjectType):
    avatar_url = graphene.String()
    is_admin = graphene.Boolean()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'name', 'phone', 'role', 'two_factor_enabled', 'is_active',
                  'created_at', 'updated_at']
        convert_choices_to_enum = False

    def resolve_avatar_url(root, info):
        return _absolute(info, root.avatar.url) if root.avatar else None

    def resolve_is_admin(root, info):
        return root.is_admin


class AuditLogType(DjangoObjectType):
    changes = GenericScalar()

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'target_type', 'target_id', 'details', 'changes', 'ip_address',
                  'created_at']
        convert_choices_to_enum = False


class AuditLogMetaType(graphene.ObjectType):
    total = graphene.Int(required=True)
    limit = graphene.Int(required=True)
    offset = graphene.Int(required=True)


class AuditLogsResult(graphene.ObjectType):
    data = graphene.List(graphene.NonNull(AuditLogType), required=True)
    meta = graphene.Field(AuditLogMetaType, required=True)


# Content
class PageSectionType(DjangoObjectType):
    content = GenericScalar(required=True)
    label = graphene.String()

    class Meta:
        model = PageSection
        fields = ['id', 'page', 'type', 'order', 'content', 'is_active', 'created_at', 'updated_at']

    def resolve_label(root, info):
        return section_label(root.type)


class PageType(DjangoObjectType):
    sections = graphene.List(graphene.NonNull(PageSectionType))

    class Meta:
        model = Page
        fields = ['id', 'title', 'slug', 'description', 'is_active', 'sections', 'created_at', 'updated_at']

    def resolve_sections(root, info):
        sections = root.sections.all()
        # Pages served to the public site only expose their active sections
        if getattr(root, 'public_view', False):
            return [section for section in sections if section.is_active]
        return sections


class PagesResult(graphene.ObjectType):
    pages = graphene.List(graphene.NonNull(PageType), required=True)


class SectionTypeInfo(graphene.ObjectType):
    type = graphene.String(required=True)
    label = graphene.String(required=True)
    default_content = GenericScalar()


# Media
class MediaType(DjangoObjectType):
    url = graphene.String()

    class Meta:
        model = Media
        fields = ['id', 'name', 'type', 'size', 'mime_type', 'alt', 'description', 'width', 'height', 'user',
                  'created_at', 'updated_at']
        convert_choices_to_enum = False

    def resolve_url(root, info):
        return _absolute(info, root.file.url) if root.file else None


class MediaResult(graphene.ObjectType):
    media = graphene.List(graphene.NonNull(MediaType), required=True)
    pagination = graphene.Field(PaginationType, required=True)


# Catalog
class CategoryType(DjangoObjectType):
    subcategories = graphene.List(graphene.NonNull(lambda: CategoryType))
    products_count = graphene.Int()

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'parent', 'level', 'order', 'is_visible',
                  'include_subcategory_products', 'image_url', 'created_at', 'updated_at']

    def resolve_subcategories(root, info):
        # categoriesList attaches the already-filtered children
        children = getattr(root, 'tree_children', None)
        if children is not None:
            return children
        return root.subcategories.order_by('order', 'name')

    def resolve_products_count(root, info):
        count = getattr(root, 'products_count', None)
        return count if count is not None else root.products.count()


class ProductImageType(DjangoObjectType):
    class Meta:
        model = ProductImage
        fields = ['id', 'url', 'alt', 'order']


class ProductCharacteristicType(DjangoObjectType):
    class Meta:
        model = ProductCharacteristic
        fields = ['id', 'name', 'value']


class ProductOptionValueType(DjangoObjectType):
    class Meta:
        model = ProductOptionValue
        fields = ['id', 'value', 'price']


class ProductOptionType(DjangoObjectType):
    class Meta:
        model = ProductOption
        fields = ['id', 'name', 'type', 'values']
        convert_choices_to_enum = False


class ProductType(DjangoObjectType):
    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'sku', 'description', 'wholesale_price', 'retail_price', 'stock',
                  'is_visible', 'category', 'images', 'characteristics', 'options', 'created_at', 'updated_at']


class CategoriesResult(graphene.ObjectType):
    categories = graphene.List(graphene.NonNull(CategoryType), required=True)


class ProductsResult(graphene.ObjectType):
    products = graphene.List(graphene.NonNull(ProductType), required=True)
    pagination = graphene.Field(PaginationType, required=True)


# Clients
class ClientProfileType(DjangoObjectType):
    class Meta:
        model = ClientProfile
        fields = ['id', 'name', 'code', 'comment', 'base_markup', 'price_markup', 'order_discount',
                  'created_at', 'updated_at']


class DiscountType(DjangoObjectType):
    class Meta:
        model = Discount
        fields = ['id', 'name', 'type', 'code', 'min_order_amount', 'discount_percent', 'fixed_discount',
                  'profiles', 'is_active', 'created_at', 'updated_at']
        convert_choices_to_enum = False


class LegalEntityType(DjangoObjectType):
    class Meta:
        model = LegalEntity
        exclude = ['client']


class RequisiteType(DjangoObjectType):
    class Meta:
        model = Requisite
        exclude = ['client']


class ContractType(DjangoObjectType):
    class Meta:
        model = Contract
        exclude = ['client']


class ClientContactType(DjangoObjectType):
    class Meta:
        model = ClientContact
        exclude = ['client']


class VehicleType(DjangoObjectType):
    class Meta:
        model = Vehicle
        exclude = ['client']
        convert_choices_to_enum = False


class DeliveryAddressType(DjangoObjectType):
    class Meta:
        model = DeliveryAddress
        exclude = ['client']


class ClientType(DjangoObjectType):
    full_name = graphene.String()

    class Meta:
        model = Client
        fields = ['id', 'phone', 'email', 'first_name', 'last_name', 'profile_type', 'profile', 'status',
                  'is_verified', 'registration_date', 'last_login_date', 'comment', 'legal_entities',
                  'requisites', 'contracts', 'contacts', 'vehicles', 'delivery_addresses',
                  'created_at', 'updated_at']
        convert_choices_to_enum = False

    def resolve_full_name(root, info):
        return root.full_name


class ClientsResult(graphene.ObjectType):
    clients = graphene.List(graphene.NonNull(ClientType), required=True)
    total = graphene.Int(required=True)
    page = graphene.Int(required=True)
    limit = graphene.Int(required=True)
    total_pages = graphene.Int(required=True)

"""
GraphQL schema served at /api/graphql/.

Resolvers share the service layer with the REST views, so validation,
domain errors and audit entries are identical across both APIs.
"""
import graphene
from django.db.models import Count, Prefetch
from graphql import GraphQLError

from protekcms.catalog.filters import ProductFilter
from protekcms.catalog.models import Category, Product
from protekcms.clients.filters import ClientFilter
from protekcms.clients.models import Client, ClientProfile, Discount
from protekcms.content.models import Page, PageSection
from protekcms.content.sections import registry_listing
from protekcms.core.filters import AuditLogFilter
from protekcms.core.models import User, AuditLog
from protekcms.core.utils import paginate_queryset
from protekcms.media_library.filters import MediaFilter
from protekcms.media_library.models import Media
from .mutations import Mutation
from .types import (
    UserType, AuditLogsResult, AuditLogMetaType, PageType, PagesResult, SectionTypeInfo,
    MediaResult, CategoryType, CategoriesResult, ProductType, ProductsResult,
    ClientType, ClientsResult, ClientProfileType, DiscountType, PaginationType,
)
from .utils import require_user, require_admin


def _page_limit(page, limit, default_limit, max_limit=200):
    page = max(page or 1, 1)
    limit = min(max(limit or default_limit, 1), max_limit)
    return page, limit


def _filtered(filterset_class, data, queryset):
    """Run a FilterSet over plain resolver arguments; unset arguments are ignored"""
    data = {key: value for key, value in data.items() if value is not None and value != ''}
    filterset = filterset_class(data, queryset=queryset)
    if not filterset.is_valid():
        raise GraphQLError(
            '; '.join(f'{field}: {", ".join(errors)}' for field, errors in filterset.errors.items())
        )
    return filterset.qs


class Query(graphene.ObjectType):
    # Accounts
    current_user = graphene.Field(UserType)
    users = graphene.List(graphene.NonNull(UserType), required=True)
    audit_logs = graphene.Field(
        AuditLogsResult,
        required=True,
        page=graphene.Int(),
        limit=graphene.Int(),
        target_type=graphene.String(),
        user_id=graphene.ID(),
        date_from=graphene.String(name='from'),
        date_to=graphene.String(name='to'),
    )

    # Content
    pages_list = graphene.Field(PagesResult, required=True, include_hidden=graphene.Boolean())
    page = graphene.Field(PageType, id=graphene.ID(), slug=graphene.String())
    page_by_slug = graphene.Field(PageType, slug=graphene.String(required=True))
    section_types = graphene.List(graphene.NonNull(SectionTypeInfo), required=True)

    # Catalog
    categories_list = graphene.Field(CategoriesResult, required=True, include_hidden=graphene.Boolean())
    category = graphene.Field(CategoryType, id=graphene.ID(required=True))
    products_list = graphene.Field(
        ProductsResult,
        required=True,
        page=graphene.Int(),
        limit=graphene.Int(),
        category_id=graphene.ID(),
        search=graphene.String(),
        stock_filter=graphene.String(),
        visibility_filter=graphene.String(),
    )
    product_item = graphene.Field(ProductType, id=graphene.ID(required=True))

    # Media
    media = graphene.Field(
        MediaResult,
        required=True,
        page=graphene.Int(),
        limit=graphene.Int(),
        type=graphene.String(),
        search=graphene.String(),
    )

    # Clients
    clients_list = graphene.Field(
        ClientsResult,
        required=True,
        page=graphene.Int(),
        limit=graphene.Int(),
        search=graphene.String(),
        profile_type=graphene.String(),
        status=graphene.String(),
        is_verified=graphene.Boolean(),
    )
    client = graphene.Field(ClientType, id=graphene.ID(required=True))
    client_profiles_list = graphene.List(graphene.NonNull(ClientProfileType), required=True)
    discounts_list = graphene.List(graphene.NonNull(DiscountType), required=True)

    def resolve_current_user(root, info):
        user = getattr(info.context, 'user', None)
        if user is None or not user.is_authenticated:
            return None
        return user

    def resolve_users(root, info):
        require_admin(info)
        return User.objects.order_by('-created_at')

    def resolve_audit_logs(root, info, page=None, limit=None, target_type=None, user_id=None,
                           date_from=None, date_to=None):
        require_admin(info)
        page, limit = _page_limit(page, limit, default_limit=50, max_limit=500)
        queryset = _filtered(AuditLogFilter, {
            'target_type': target_type,
            'user': user_id,
            'date_from': date_from[:10] if date_from else None,
            'date_to': date_to[:10] if date_to else None,
        }, AuditLog.objects.select_related('user')).order_by('-created_at', '-id')

        offset = (page - 1) * limit
        return AuditLogsResult(
            data=list(queryset[offset:offset + limit]),
            meta=AuditLogMetaType(total=queryset.count(), limit=limit, offset=offset),
        )

    def resolve_pages_list(root, info, include_hidden=False):
        require_user(info)
        pages = Page.objects.prefetch_related('sections').order_by('title')
        if not include_hidden:
            pages = pages.filter(is_active=True)
        return PagesResult(pages=list(pages))

    def resolve_page(root, info, id=None, slug=None):
        require_user(info)
        if id is None and not slug:
            raise GraphQLError('Either id or slug is required')
        pages = Page.objects.prefetch_related('sections')
        return pages.filter(pk=id).first() if id is not None else pages.filter(slug=slug).first()

    def resolve_page_by_slug(root, info, slug):
        page = Page.objects.filter(slug=slug, is_active=True).prefetch_related(
            Prefetch('sections', queryset=PageSection.objects.order_by('order', 'id')),
        ).first()
        if page is not None:
            page.public_view = True
        return page

    def resolve_section_types(root, info):
        require_user(info)
        return [SectionTypeInfo(**entry) for entry in registry_listing()]

    def resolve_categories_list(root, info, include_hidden=False):
        require_user(info)
        queryset = Category.objects.annotate(products_count=Count('products')).order_by('level', 'order', 'name')
        if not include_hidden:
            queryset = queryset.filter(is_visible=True)

        categories = list(queryset)
        by_id = {category.pk: category for category in categories}
        for category in categories:
            category.tree_children = []
        roots = []
        for category in categories:
            if category.parent_id is None:
                roots.append(category)
            elif category.parent_id in by_id:
                by_id[category.parent_id].tree_children.append(category)
        return CategoriesResult(categories=roots)

    def resolve_category(root, info, id):
        require_user(info)
        return Category.objects.annotate(products_count=Count('products')).filter(pk=id).first()

    def resolve_products_list(root, info, page=None, limit=None, category_id=None, search=None,
                              stock_filter=None, visibility_filter=None):
        require_user(info)
        page, limit = _page_limit(page, limit, default_limit=20)
        queryset = _filtered(ProductFilter, {
            'category': category_id,
            'search': search,
            'stock_filter': stock_filter,
            'visibility_filter': visibility_filter,
        }, Product.objects.select_related('category').prefetch_related('images'))
        items, pagination = paginate_queryset(queryset, page, limit)
        return ProductsResult(products=items, pagination=PaginationType(**pagination))

    def resolve_product_item(root, info, id):
        require_user(info)
        return Product.objects.select_related('category').prefetch_related(
            'images', 'characteristics', 'options__values',
        ).filter(pk=id).first()

    def resolve_media(root, info, page=None, limit=None, type=None, search=None):
        require_user(info)
        page, limit = _page_limit(page, limit, default_limit=20)
        queryset = _filtered(MediaFilter, {'type': type, 'search': search},
                             Media.objects.select_related('user'))
        items, pagination = paginate_queryset(queryset, page, limit)
        return MediaResult(media=items, pagination=PaginationType(**pagination))

    def resolve_clients_list(root, info, page=None, limit=None, search=None, profile_type=None,
                             status=None, is_verified=None):
        require_user(info)
        page, limit = _page_limit(page, limit, default_limit=10)
        queryset = _filtered(ClientFilter, {
            'search': search,
            'profile_type': profile_type,
            'status': status,
            'is_verified': None if is_verified is None else str(is_verified).lower(),
        }, Client.objects.select_related('profile'))
        items, pagination = paginate_queryset(queryset, page, limit)
        return ClientsResult(
            clients=items,
            total=pagination['total'],
            page=pagination['page'],
            limit=pagination['limit'],
            total_pages=pagination['pages'],
        )

    def resolve_client(root, info, id):
        require_user(info)
        return Client.objects.select_related('profile').prefetch_related(
            'legal_entities', 'requisites', 'contracts', 'contacts', 'vehicles', 'delivery_addresses',
        ).filter(pk=id).first()

    def resolve_client_profiles_list(root, info):
        require_user(info)
        return ClientProfile.objects.all()

    def resolve_discounts_list(root, info):
        require_user(info)
        return Discount.objects.prefetch_related('profiles')


schema = graphene.Schema(query=Query, mutation=Mutation)

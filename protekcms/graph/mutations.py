"""GraphQL mutations; each one delegates to the matching service function"""
import graphene
from graphene.types.generic import GenericScalar

from protekcms.catalog import services as catalog_services
from protekcms.catalog.models import Category, Product
from protekcms.clients import services as client_services
from protekcms.clients.models import Client
from protekcms.content import services as content_services
from protekcms.content.models import Page, PageSection
from protekcms.core.models import AuditLog
from protekcms.core.serializers import ProfileSerializer, PasswordChangeSerializer
from protekcms.core.utils import create_audit_log
from protekcms.media_library import services as media_services
from protekcms.media_library.models import Media
from .types import UserType, PageType, PageSectionType, ClientType
from .utils import require_user, get_or_error, run_service


# Inputs
class CreatePageInput(graphene.InputObjectType):
    title = graphene.String(required=True)
    slug = graphene.String()
    description = graphene.String()
    is_active = graphene.Boolean()


class UpdatePageInput(graphene.InputObjectType):
    title = graphene.String()
    slug = graphene.String()
    description = graphene.String()
    is_active = graphene.Boolean()


class CreatePageSectionInput(graphene.InputObjectType):
    page_id = graphene.ID(required=True)
    type = graphene.String(required=True)
    order = graphene.Int()
    content = GenericScalar()
    is_active = graphene.Boolean()


class UpdatePageSectionInput(graphene.InputObjectType):
    content = GenericScalar()
    is_active = graphene.Boolean()


class BulkProductUpdateData(graphene.InputObjectType):
    is_visible = graphene.Boolean()
    category_id = graphene.ID()
    stock = graphene.Int()
    wholesale_price = graphene.Decimal()
    retail_price = graphene.Decimal()


class BulkUpdateProductsInput(graphene.InputObjectType):
    product_ids = graphene.List(graphene.NonNull(graphene.ID), required=True)
    data = BulkProductUpdateData(required=True)


class ClientInput(graphene.InputObjectType):
    phone = graphene.String()
    email = graphene.String()
    first_name = graphene.String()
    last_name = graphene.String()
    profile_type = graphene.String()
    profile_id = graphene.ID()
    status = graphene.String()
    is_verified = graphene.Boolean()
    comment = graphene.String()


class UpdateUserInput(graphene.InputObjectType):
    name = graphene.String()
    email = graphene.String()
    phone = graphene.String()


class ChangePasswordInput(graphene.InputObjectType):
    current_password = graphene.String(required=True)
    new_password = graphene.String(required=True)


def _client_data(input):
    data = dict(input)
    if 'profile_id' in data:
        data['profile'] = data.pop('profile_id')
    return data


# Pages
class CreatePage(graphene.Mutation):
    class Arguments:
        input = CreatePageInput(required=True)

    Output = PageType

    def mutate(root, info, input):
        require_user(info)
        return run_service(content_services.create_page, dict(input), request=info.context)


class UpdatePage(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)
        input = UpdatePageInput(required=True)

    Output = PageType

    def mutate(root, info, id, input):
        require_user(info)
        page = get_or_error(Page.objects.all(), id, 'Page')
        return run_service(content_services.update_page, page, dict(input), request=info.context)


class DeletePage(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    Output = graphene.Boolean

    def mutate(root, info, id):
        require_user(info)
        page = get_or_error(Page.objects.all(), id, 'Page')
        run_service(content_services.delete_page, page, request=info.context)
        return True


class CreatePageSection(graphene.Mutation):
    class Arguments:
        input = CreatePageSectionInput(required=True)

    Output = PageSectionType

    def mutate(root, info, input):
        require_user(info)
        data = dict(input)
        page = get_or_error(Page.objects.all(), data.pop('page_id'), 'Page')
        return run_service(content_services.create_section, page, data, request=info.context)


class UpdatePageSection(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)
        input = UpdatePageSectionInput(required=True)

    Output = PageSectionType

    def mutate(root, info, id, input):
        require_user(info)
        section = get_or_error(PageSection.objects.select_related('page'), id, 'Section')
        data = dict(input)
        if data.get('content') is None:
            data['content'] = section.content
        return run_service(content_services.update_section, section, data, request=info.context)


class DeletePageSection(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    Output = graphene.Boolean

    def mutate(root, info, id):
        require_user(info)
        section = get_or_error(PageSection.objects.select_related('page'), id, 'Section')
        run_service(content_services.delete_section, section, request=info.context)
        return True


# Catalog
class DeleteCategory(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    Output = graphene.Boolean

    def mutate(root, info, id):
        require_user(info)
        category = get_or_error(Category.objects.all(), id, 'Category')
        run_service(catalog_services.delete_category, category, request=info.context)
        return True


class DeleteProduct(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    Output = graphene.Boolean

    def mutate(root, info, id):
        require_user(info)
        product = get_or_error(Product.objects.all(), id, 'Product')
        run_service(catalog_services.delete_product, product, request=info.context)
        return True


class BulkDeleteProducts(graphene.Mutation):
    class Arguments:
        product_ids = graphene.List(graphene.NonNull(graphene.ID), required=True)

    Output = graphene.Int

    def mutate(root, info, product_ids):
        require_user(info)
        return run_service(catalog_services.bulk_delete_products, {'product_ids': product_ids},
                           request=info.context)


class BulkUpdateProducts(graphene.Mutation):
    class Arguments:
        input = BulkUpdateProductsInput(required=True)

    Output = graphene.Int

    def mutate(root, info, input):
        require_user(info)
        values = dict(input['data'])
        if 'category_id' in values:
            values['category'] = values.pop('category_id')
        return run_service(catalog_services.bulk_update_products,
                           {'product_ids': input['product_ids'], 'data': values}, request=info.context)


# Media
class DeleteMedia(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    Output = graphene.Boolean

    def mutate(root, info, id):
        require_user(info)
        media = get_or_error(Media.objects.all(), id, 'Media')
        media_services.delete_media(media, request=info.context)
        return True


# Clients
class CreateClient(graphene.Mutation):
    class Arguments:
        input = ClientInput(required=True)

    Output = ClientType

    def mutate(root, info, input):
        require_user(info)
        return run_service(client_services.create_client, _client_data(input), request=info.context)


class UpdateClient(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)
        input = ClientInput(required=True)

    Output = ClientType

    def mutate(root, info, id, input):
        require_user(info)
        client = get_or_error(Client.objects.all(), id, 'Client')
        return run_service(client_services.update_client, client, _client_data(input), request=info.context)


class DeleteClient(graphene.Mutation):
    class Arguments:
        id = graphene.ID(required=True)

    Output = graphene.Boolean

    def mutate(root, info, id):
        require_user(info)
        client = get_or_error(Client.objects.all(), id, 'Client')
        client_services.delete_client(client, request=info.context)
        return True


# Account
def _update_profile(request, data):
    serializer = ProfileSerializer(request.user, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'user', user.pk,
                     details=f'Profile updated: {user.display_name}',
                     changes={'fields': sorted(serializer.validated_data.keys()), 'password_changed': False})
    return user


def _change_password(request, data):
    serializer = PasswordChangeSerializer(data=data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    user = request.user
    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password'])
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'user', user.pk, details='Password changed',
                     changes={'password_changed': True})
    return user


class UpdateUser(graphene.Mutation):
    """Edit the signed-in user's own profile"""

    class Arguments:
        input = UpdateUserInput(required=True)

    Output = UserType

    def mutate(root, info, input):
        require_user(info)
        return run_service(_update_profile, info.context, dict(input))


class ChangePassword(graphene.Mutation):
    class Arguments:
        input = ChangePasswordInput(required=True)

    Output = UserType

    def mutate(root, info, input):
        require_user(info)
        return run_service(_change_password, info.context, dict(input))


class Mutation(graphene.ObjectType):
    create_page = CreatePage.Field()
    update_page = UpdatePage.Field()
    delete_page = DeletePage.Field()
    create_page_section = CreatePageSection.Field()
    update_page_section = UpdatePageSection.Field()
    delete_page_section = DeletePageSection.Field()
    delete_category = DeleteCategory.Field()
    delete_product = DeleteProduct.Field()
    bulk_delete_products = BulkDeleteProducts.Field()
    bulk_update_products = BulkUpdateProducts.Field()
    delete_media = DeleteMedia.Field()
    create_client = CreateClient.Field()
    update_client = UpdateClient.Field()
    delete_client = DeleteClient.Field()
    update_user = UpdateUser.Field()
    change_password = ChangePassword.Field()

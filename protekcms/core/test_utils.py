"""
Test utilities and factories for creating test data
"""
import io
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from protekcms.catalog.models import Category, Product
from protekcms.clients.models import Client, ClientProfile, Discount
from protekcms.content.models import Page, PageSection
from protekcms.content.sections import default_content
from protekcms.media_library.models import Media

User = get_user_model()

TEST_PASSWORD = 'Vr7#kLp2-quartz'


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password=TEST_PASSWORD, role=User.ROLE_MANAGER, name=None):
        """Create a test user (manager by default)"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            name=name or username,
        )

    @staticmethod
    def create_admin(**kwargs):
        kwargs.setdefault('role', User.ROLE_ADMIN)
        return TestDataFactory.create_user(**kwargs)

    @staticmethod
    def create_page(title=None, slug=None, is_active=True, description=None):
        if not title:
            title = f'Page {TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'page-{TestDataFactory.random_string(6)}'
        return Page.objects.create(title=title, slug=slug, is_active=is_active, description=description)

    @staticmethod
    def create_section(page, type='hero', order=None, content=None, is_active=True):
        """Create a section with the registry default content unless given"""
        if order is None:
            order = page.sections.count()
        return PageSection.objects.create(
            page=page,
            type=type,
            order=order,
            content=content if content is not None else default_content(type),
            is_active=is_active,
        )

    @staticmethod
    def image_file(name='image.png', size=(40, 30), color='red', format='PNG'):
        """In-memory image upload generated with Pillow"""
        buffer = io.BytesIO()
        Image.new('RGB', size, color).save(buffer, format=format)
        content_type = 'image/png' if format == 'PNG' else f'image/{format.lower()}'
        return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)

    @staticmethod
    def create_media(user=None, name='image.png', alt=None):
        """Create a media record; call inside override_settings(MEDIA_ROOT=...)"""
        upload = TestDataFactory.image_file(name=name)
        media = Media(
            name=name,
            type=Media.TYPE_IMAGE,
            size=upload.size,
            mime_type='image/png',
            alt=alt,
            user=user,
        )
        media.file.save(name, upload, save=False)
        media.save()
        return media

    @staticmethod
    def create_category(name=None, parent=None, is_visible=True, include_subcategory_products=False, order=0):
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            slug=f'category-{TestDataFactory.random_string(8)}',
            parent=parent,
            level=parent.level + 1 if parent else 0,
            order=order,
            is_visible=is_visible,
            include_subcategory_products=include_subcategory_products,
        )

    @staticmethod
    def create_product(name=None, sku=None, category=None, stock=10, is_visible=True,
                       wholesale_price=Decimal('100.00'), retail_price=Decimal('150.00')):
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU-{TestDataFactory.random_string(8).upper()}'
        return Product.objects.create(
            name=name,
            slug=f'product-{TestDataFactory.random_string(8)}',
            sku=sku,
            category=category,
            stock=stock,
            is_visible=is_visible,
            wholesale_price=wholesale_price,
            retail_price=retail_price,
        )

    @staticmethod
    def create_client_profile(name=None, code=None, base_markup='0'):
        if not name:
            name = f'Profile {TestDataFactory.random_string(6)}'
        if not code:
            code = f'PROF-{TestDataFactory.random_string(6).upper()}'
        return ClientProfile.objects.create(name=name, code=code, base_markup=base_markup)

    @staticmethod
    def create_client(phone=None, first_name=None, last_name=None, email=None, profile=None,
                      status=Client.STATUS_ACTIVE, is_verified=False):
        if not phone:
            phone = f'+79{random.randint(100000000, 999999999)}'
        return Client.objects.create(
            phone=phone,
            first_name=first_name,
            last_name=last_name,
            email=email,
            profile=profile,
            profile_type=profile.name if profile else 'Розничный',
            status=status,
            is_verified=is_verified,
        )

    @staticmethod
    def create_discount(name=None, type=Discount.TYPE_DISCOUNT, code=None, discount_percent=Decimal('5.00'),
                        profiles=None):
        if not name:
            name = f'Discount {TestDataFactory.random_string(6)}'
        discount = Discount.objects.create(
            name=name,
            type=type,
            code=code,
            discount_percent=discount_percent,
        )
        if profiles:
            discount.profiles.set(profiles)
        return discount


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()

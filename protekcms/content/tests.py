"""
Tests for pages, sections, the section registry and the public page cache
"""
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import serializers, status

from protekcms.content.models import Page, PageSection
from protekcms.content.sections import (
    SECTION_TYPES, default_content, validate_section_content, page_kind, available_section_types,
)
from protekcms.content.services import get_public_page, public_page_cache_key
from protekcms.core.models import AuditLog
from protekcms.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class SectionRegistryTests(TestCase):
    def test_every_default_is_valid(self):
        for section_type in SECTION_TYPES:
            with self.subTest(section_type=section_type):
                validate_section_content(section_type, default_content(section_type))

    def test_default_content_is_a_copy(self):
        content = default_content('hero')
        content['subtitle'].append('changed')
        self.assertNotIn('changed', default_content('hero')['subtitle'])

    def test_unknown_type(self):
        with self.assertRaises(serializers.ValidationError) as ctx:
            validate_section_content('carousel', {})
        self.assertIn('type', ctx.exception.detail)

    def test_hero_requires_title(self):
        content = default_content('hero')
        content['title'] = ''
        with self.assertRaises(serializers.ValidationError) as ctx:
            validate_section_content('hero', content)
        self.assertIn('title', ctx.exception.detail['content'])

    def test_map_zoom_range(self):
        with self.assertRaises(serializers.ValidationError):
            validate_section_content('map', {'latitude': 55.7, 'longitude': 37.6, 'zoom': 25})

    def test_unknown_keys_dropped(self):
        content = default_content('welcome')
        content['extra'] = 'ignored'
        self.assertNotIn('extra', validate_section_content('welcome', content))

    def test_page_kind(self):
        self.assertEqual(page_kind(['hero']), 'wholesale')
        self.assertEqual(page_kind(['map']), 'contacts')
        self.assertEqual(page_kind([], slug='about'), 'about')
        self.assertIsNone(page_kind([], slug='landing'))

    def test_available_section_types(self):
        page = TestDataFactory.create_page(slug='contacts')
        self.assertEqual(available_section_types(page), ['contacts', 'map'])
        TestDataFactory.create_section(page, type='map')
        self.assertEqual(available_section_types(page), ['contacts'])

        unknown = TestDataFactory.create_page(slug='landing')
        self.assertEqual(available_section_types(unknown), list(SECTION_TYPES))


class PageAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def test_requires_authentication(self):
        self.client.logout()
        self.assertEqual(self.client.get('/api/v1/pages/').status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_page_generates_slug(self):
        response = self.client.post('/api/v1/pages/', {'title': 'Delivery Terms'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'delivery-terms')
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_CREATE, target_type='page').exists())

    def test_long_title_slug_is_truncated(self):
        title = ('Delivery terms ' * 17).strip()
        response = self.client.post('/api/v1/pages/', {'title': title}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertLessEqual(len(response.data['slug']), 240)
        self.assertTrue(response.data['slug'].startswith('delivery-terms-delivery-terms'))

    def test_duplicate_slug(self):
        TestDataFactory.create_page(slug='about')
        response = self.client.post('/api/v1/pages/', {'title': 'About', 'slug': 'about'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A page with this slug already exists')

    def test_list_with_section_counts(self):
        page = TestDataFactory.create_page(title='Contacts', slug='contacts')
        TestDataFactory.create_section(page, type='contacts')
        TestDataFactory.create_page(title='Hidden', is_active=False)
        response = self.client.get('/api/v1/pages/')
        self.assertEqual(len(response.data), 2)
        contacts = next(item for item in response.data if item['slug'] == 'contacts')
        self.assertEqual(contacts['sections_count'], 1)

        response = self.client.get('/api/v1/pages/', {'is_active': 'true'})
        self.assertEqual([item['slug'] for item in response.data], ['contacts'])

    def test_update_page(self):
        page = TestDataFactory.create_page(slug='old-slug')
        response = self.client.patch(f'/api/v1/pages/{page.pk}/', {'slug': 'new-slug', 'is_active': False},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        page.refresh_from_db()
        self.assertEqual(page.slug, 'new-slug')
        self.assertFalse(page.is_active)

    def test_update_to_taken_slug(self):
        TestDataFactory.create_page(slug='taken')
        page = TestDataFactory.create_page()
        response = self.client.patch(f'/api/v1/pages/{page.pk}/', {'slug': 'taken'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_page_removes_sections(self):
        page = TestDataFactory.create_page()
        TestDataFactory.create_section(page)
        response = self.client.delete(f'/api/v1/pages/{page.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PageSection.objects.exists())


class SectionAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.page = TestDataFactory.create_page(slug='wholesale')

    def test_create_with_default_content(self):
        response = self.client.post(f'/api/v1/pages/{self.page.pk}/sections/', {'type': 'hero'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['content'], default_content('hero'))
        self.assertEqual(response.data['order'], 0)
        self.assertEqual(response.data['label'], 'Заголовок')

    def test_order_appends(self):
        TestDataFactory.create_section(self.page, type='hero', order=4)
        response = self.client.post(f'/api/v1/pages/{self.page.pk}/sections/', {'type': 'benefits'},
                                    format='json')
        self.assertEqual(response.data['order'], 5)

    def test_duplicate_type_rejected(self):
        TestDataFactory.create_section(self.page, type='hero')
        response = self.client.post(f'/api/v1/pages/{self.page.pk}/sections/', {'type': 'hero'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('already exists', response.data['error'])

    def test_invalid_content_rejected(self):
        response = self.client.post(f'/api/v1/pages/{self.page.pk}/sections/', {
            'type': 'services',
            'content': {'title': 'Сервисы', 'items': []},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('content', response.data)

    def test_update_content(self):
        section = TestDataFactory.create_section(self.page, type='hero')
        content = default_content('hero')
        content['title'] = 'Новый заголовок'
        response = self.client.patch(f'/api/v1/pages/{self.page.pk}/sections/{section.pk}/',
                                     {'content': content, 'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        section.refresh_from_db()
        self.assertEqual(section.content['title'], 'Новый заголовок')
        self.assertFalse(section.is_active)
        log = AuditLog.objects.get(action=AuditLog.ACTION_UPDATE, target_type='page_section')
        self.assertEqual(log.changes['fields'], ['title'])

    def test_update_without_content_rejected(self):
        section = TestDataFactory.create_section(self.page, type='hero')
        response = self.client.patch(f'/api/v1/pages/{self.page.pk}/sections/{section.pk}/',
                                     {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('content', response.data)
        section.refresh_from_db()
        self.assertTrue(section.is_active)

    def test_update_content_only_keeps_is_active(self):
        section = TestDataFactory.create_section(self.page, type='hero', is_active=False)
        content = default_content('hero')
        content['title'] = 'Опт'
        response = self.client.patch(f'/api/v1/pages/{self.page.pk}/sections/{section.pk}/',
                                     {'content': content}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        section.refresh_from_db()
        self.assertEqual(section.content['title'], 'Опт')
        self.assertFalse(section.is_active)

    def test_section_of_other_page_is_404(self):
        other = TestDataFactory.create_page()
        section = TestDataFactory.create_section(other, type='hero')
        response = self.client.get(f'/api/v1/pages/{self.page.pk}/sections/{section.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_reorder(self):
        first = TestDataFactory.create_section(self.page, type='hero')
        second = TestDataFactory.create_section(self.page, type='benefits')
        response = self.client.post(f'/api/v1/pages/{self.page.pk}/sections/reorder/',
                                    {'order': [second.pk, first.pk]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['id'] for item in response.data], [second.pk, first.pk])

    def test_reorder_must_list_every_section(self):
        first = TestDataFactory.create_section(self.page, type='hero')
        TestDataFactory.create_section(self.page, type='benefits')
        response = self.client.post(f'/api/v1/pages/{self.page.pk}/sections/reorder/',
                                    {'order': [first.pk]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_available_sections(self):
        TestDataFactory.create_section(self.page, type='hero')
        response = self.client.get(f'/api/v1/pages/{self.page.pk}/available-sections/')
        self.assertEqual([item['type'] for item in response.data], ['benefits', 'services', 'process', 'support'])

    def test_section_types(self):
        response = self.client.get('/api/v1/section-types/')
        self.assertEqual(len(response.data), len(SECTION_TYPES))
        self.assertIn('default_content', response.data[0])


class PublicPageTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.page = TestDataFactory.create_page(title='Контакты', slug='contacts')
        TestDataFactory.create_section(self.page, type='contacts')
        TestDataFactory.create_section(self.page, type='map', is_active=False)

    def test_public_page_without_auth(self):
        response = self.client.get('/api/v1/public/pages/contacts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['type'] for s in response.data['sections']], ['contacts'])

    def test_inactive_page_is_404(self):
        TestDataFactory.create_page(slug='draft', is_active=False)
        response = self.client.get('/api/v1/public/pages/draft/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Page not found')

    def test_page_is_cached(self):
        get_public_page('contacts')
        self.assertIsNotNone(cache.get(public_page_cache_key('contacts')))

    def test_section_change_invalidates_cache(self):
        get_public_page('contacts')
        section = self.page.sections.get(type='map')
        section.is_active = True
        section.save()
        self.assertIsNone(cache.get(public_page_cache_key('contacts')))
        self.assertEqual(len(get_public_page('contacts')['sections']), 2)

    def test_slug_change_invalidates_old_key(self):
        get_public_page('contacts')
        self.page.slug = 'contact-us'
        self.page.save()
        self.assertIsNone(cache.get(public_page_cache_key('contacts')))
        self.assertIsNone(get_public_page('contacts'))


class SeedPagesCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command('seed_pages', stdout=StringIO())
        self.assertEqual(Page.objects.count(), 4)
        sections = PageSection.objects.count()
        call_command('seed_pages', stdout=StringIO())
        self.assertEqual(Page.objects.count(), 4)
        self.assertEqual(PageSection.objects.count(), sections)

    def test_dry_run_writes_nothing(self):
        out = StringIO()
        call_command('seed_pages', dry_run=True, stdout=out)
        self.assertFalse(Page.objects.exists())
        self.assertIn('Would create 4 pages', out.getvalue())

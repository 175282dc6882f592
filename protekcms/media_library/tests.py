"""
Tests for the media library: upload validation, listing, edits and deletion
"""
import os
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status

from protekcms.core.models import AuditLog
from protekcms.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from protekcms.media_library.models import Media, media_upload_to


class MediaTestCase(TestCase):
    """Stores uploads in a throwaway MEDIA_ROOT"""

    def setUp(self):
        media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, media_root, ignore_errors=True)
        override = override_settings(MEDIA_ROOT=media_root)
        override.enable()
        self.addCleanup(override.disable)

        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)


class MediaUploadTests(MediaTestCase):
    def test_upload_image(self):
        response = self.client.post('/api/v1/media/upload/', {
            'file': TestDataFactory.image_file(name='Photo.PNG', size=(64, 48)),
            'alt': 'Warehouse',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Photo.PNG')
        self.assertEqual(response.data['width'], 64)
        self.assertEqual(response.data['height'], 48)
        self.assertEqual(response.data['user']['id'], self.user.pk)
        self.assertTrue(response.data['url'].startswith('http://testserver/media/media/'))

        media = Media.objects.get()
        self.assertTrue(media.file.name.endswith('.png'))
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_CREATE, target_type='media',
                                                target_id=str(media.pk)).exists())

    def test_upload_without_file(self):
        response = self.client.post('/api/v1/media/upload/', {'alt': 'nothing'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No file provided')

    def test_upload_rejects_non_image(self):
        upload = SimpleUploadedFile('notes.txt', b'plain text', content_type='text/plain')
        response = self.client.post('/api/v1/media/upload/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Media.objects.exists())

    @override_settings(MEDIA_MAX_UPLOAD_MB=0)
    def test_upload_size_limit(self):
        response = self.client.post('/api/v1/media/upload/', {'file': TestDataFactory.image_file()},
                                    format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_requires_authentication(self):
        self.client.logout()
        response = self.client.post('/api/v1/media/upload/', {'file': TestDataFactory.image_file()},
                                    format='multipart')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_upload_path_is_randomised(self):
        first = media_upload_to(None, 'same.JPG')
        second = media_upload_to(None, 'same.JPG')
        self.assertNotEqual(first, second)
        self.assertTrue(first.startswith('media/'))
        self.assertTrue(first.endswith('.jpg'))


class MediaManagementTests(MediaTestCase):
    def test_list_with_search_and_pagination(self):
        TestDataFactory.create_media(user=self.user, name='truck.png', alt='Грузовик')
        TestDataFactory.create_media(user=self.user, name='pump.png')
        TestDataFactory.create_media(user=self.user, name='filter.png')

        response = self.client.get('/api/v1/media/', {'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['media']), 2)
        self.assertEqual(response.data['pagination'], {'total': 3, 'page': 1, 'limit': 2, 'pages': 2})

        response = self.client.get('/api/v1/media/', {'search': 'Грузовик'})
        self.assertEqual([item['name'] for item in response.data['media']], ['truck.png'])

    def test_update_alt_and_description(self):
        media = TestDataFactory.create_media(user=self.user)
        response = self.client.patch(f'/api/v1/media/{media.pk}/', {'alt': 'Logo', 'description': 'Main logo'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        media.refresh_from_db()
        self.assertEqual(media.alt, 'Logo')
        self.assertEqual(media.description, 'Main logo')

    def test_delete_removes_file(self):
        media = TestDataFactory.create_media(user=self.user)
        path = media.file.path
        self.assertTrue(os.path.exists(path))

        response = self.client.delete(f'/api/v1/media/{media.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Media.objects.filter(pk=media.pk).exists())
        self.assertFalse(os.path.exists(path))
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_DELETE, target_type='media').exists())

    def test_missing_media_is_404(self):
        self.assertEqual(self.client.get('/api/v1/media/999/').status_code, status.HTTP_404_NOT_FOUND)

"""
Tests for accounts, authentication, two-factor, setup and audit logs
"""
import shutil
import tempfile
from unittest.mock import patch

import pyotp
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.db import DatabaseError, connection
from django.test import TestCase, override_settings
from rest_framework import status

from protekcms.core.models import User, AuditLog
from protekcms.core.test_utils import TestDataFactory, AuthenticatedAPIClient, TEST_PASSWORD
from protekcms.core.two_factor import make_login_challenge, read_login_challenge
from protekcms.core.utils import create_audit_log


class LoginTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='manager', email='manager@test.com')

    def test_login_with_username(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'manager', 'password': TEST_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['requires_two_factor'])
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'manager@test.com')

    def test_login_with_email_is_logged(self):
        response = self.client.post('/api/v1/auth/login/',
                                    {'username': 'MANAGER@test.com', 'password': TEST_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_LOGIN, user=self.user).exists())

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'manager', 'password': 'wrong'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        tokens = self.client.post('/api/v1/auth/login/',
                                  {'username': 'manager', 'password': TEST_PASSWORD}).data
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': tokens['refresh']})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'manager')
        self.assertFalse(response.data['is_admin'])
        self.assertNotIn('two_factor_secret', response.data)


class TwoFactorTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='secure', email='secure@test.com')
        self.client.authenticate_user(self.user)

    def _enable(self):
        secret = self.client.post('/api/v1/auth/two-factor/setup/').data['secret']
        response = self.client.post('/api/v1/auth/two-factor/verify/', {'token': pyotp.TOTP(secret).now()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return secret

    def test_setup_returns_secret_and_uri(self):
        response = self.client.post('/api/v1/auth/two-factor/setup/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['two_factor_enabled'])
        self.assertTrue(response.data['otpauth_url'].startswith('otpauth://totp/'))
        self.user.refresh_from_db()
        self.assertFalse(self.user.two_factor_enabled)

    def test_verify_rejects_wrong_token(self):
        self.client.post('/api/v1/auth/two-factor/setup/')
        response = self.client.post('/api/v1/auth/two-factor/verify/', {'token': '000000'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid token')

    def test_verify_without_setup(self):
        response = self.client.post('/api/v1/auth/two-factor/verify/', {'token': '123456'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_flow_with_two_factor(self):
        secret = self._enable()
        self.client.logout()

        response = self.client.post('/api/v1/auth/login/', {'username': 'secure', 'password': TEST_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['requires_two_factor'])
        self.assertNotIn('access', response.data)

        response = self.client.post('/api/v1/auth/two-factor/validate/', {
            'challenge': response.data['challenge'],
            'token': pyotp.TOTP(secret).now(),
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_validate_with_bad_challenge(self):
        self._enable()
        response = self.client.post('/api/v1/auth/two-factor/validate/',
                                    {'challenge': 'garbage', 'token': '123456'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_disable_requires_password(self):
        self._enable()
        response = self.client.post('/api/v1/auth/two-factor/disable/', {'password': 'nope'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/auth/two-factor/disable/', {'password': TEST_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertFalse(self.user.two_factor_enabled)
        self.assertIsNone(self.user.two_factor_secret)

    def test_challenge_round_trip(self):
        self.assertEqual(read_login_challenge(make_login_challenge(self.user)), self.user.pk)
        self.assertIsNone(read_login_challenge('tampered:value'))


class UserManagementTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin(username='boss')
        self.manager = TestDataFactory.create_user(username='worker')

    def test_manager_cannot_list_users(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/users/', {
            'email': 'new@test.com',
            'name': 'New Manager',
            'password': TEST_PASSWORD,
            'role': User.ROLE_MANAGER,
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='new@test.com')
        self.assertEqual(user.username, 'new@test.com')
        self.assertTrue(user.check_password(TEST_PASSWORD))
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_CREATE, target_type='user',
                                                target_id=str(user.pk)).exists())

    def test_admin_updates_role(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.manager.pk}/', {'role': User.ROLE_ADMIN})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.manager.refresh_from_db()
        self.assertTrue(self.manager.is_admin)

    def test_admin_cannot_delete_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.admin.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete yourself')

    def test_admin_deletes_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.manager.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.manager.pk).exists())


class AccountSettingsTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='owner', email='owner@test.com')
        self.client.authenticate_user(self.user)

    def test_update_profile(self):
        response = self.client.patch('/api/v1/settings/', {'name': 'Renamed', 'phone': '+79990000000'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'Renamed')

    def test_duplicate_email_rejected(self):
        TestDataFactory.create_user(email='taken@test.com')
        response = self.client.patch('/api/v1/settings/', {'email': 'taken@test.com'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_change_password(self):
        response = self.client.patch('/api/v1/settings/', {
            'current_password': TEST_PASSWORD,
            'new_password': 'Another#Pass-9931',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('Another#Pass-9931'))

    def test_change_password_wrong_current(self):
        response = self.client.patch('/api/v1/settings/', {
            'current_password': 'wrong',
            'new_password': 'Another#Pass-9931',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password(TEST_PASSWORD))


class AvatarTests(TestCase):
    def setUp(self):
        media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, media_root, ignore_errors=True)
        override = override_settings(MEDIA_ROOT=media_root)
        override.enable()
        self.addCleanup(override.disable)

        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def test_upload_and_remove_avatar(self):
        response = self.client.post('/api/v1/settings/avatar/',
                                    {'avatar': TestDataFactory.image_file(name='me.png')}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('avatars/', response.data['avatar_url'])
        self.user.refresh_from_db()
        self.assertTrue(self.user.avatar)

        response = self.client.delete('/api/v1/settings/avatar/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['avatar_url'])
        self.user.refresh_from_db()
        self.assertFalse(self.user.avatar)
        self.assertEqual(AuditLog.objects.filter(target_type='user', target_id=str(self.user.pk)).count(), 2)

    def test_avatar_must_be_an_image(self):
        upload = SimpleUploadedFile('notes.txt', b'plain text', content_type='text/plain')
        response = self.client.post('/api/v1/settings/avatar/', {'avatar': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertFalse(self.user.avatar)

    @override_settings(MEDIA_MAX_UPLOAD_MB=0)
    def test_avatar_size_limit(self):
        response = self.client.post('/api/v1/settings/avatar/',
                                    {'avatar': TestDataFactory.image_file()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('avatar', response.data)
        self.user.refresh_from_db()
        self.assertFalse(self.user.avatar)


class SetupTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_first_admin_setup(self):
        self.assertTrue(self.client.get('/api/v1/setup/check/').data['needs_setup'])
        response = self.client.post('/api/v1/setup/', {
            'email': 'first@test.com',
            'name': 'First Admin',
            'password': TEST_PASSWORD,
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        user = User.objects.get(email='first@test.com')
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertTrue(user.is_superuser)
        self.assertFalse(self.client.get('/api/v1/setup/check/').data['needs_setup'])

    def test_setup_refused_when_users_exist(self):
        TestDataFactory.create_user()
        response = self.client.post('/api/v1/setup/', {'email': 'late@test.com', 'password': TEST_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_admin_command(self):
        call_command('create_admin', email='cli@test.com', password=TEST_PASSWORD, name='CLI Admin')
        self.assertTrue(User.objects.filter(email='cli@test.com', role=User.ROLE_ADMIN).exists())
        call_command('create_admin', email='cli@test.com', password=TEST_PASSWORD, skip_existing=True)
        self.assertEqual(User.objects.filter(email='cli@test.com').count(), 1)


class AuditLogTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.manager = TestDataFactory.create_user()
        create_audit_log(action=AuditLog.ACTION_CREATE, target_type='page', target_id=1,
                         details='Page created: Home', user=self.manager)
        create_audit_log(action=AuditLog.ACTION_DELETE, target_type='product', target_id=7,
                         details='Product deleted: Pump', user=self.admin)

    def test_create_audit_log_without_request(self):
        log = create_audit_log(action=AuditLog.ACTION_UPDATE, target_type='media', target_id=3)
        self.assertIsNotNone(log)
        self.assertIsNone(log.user)
        self.assertEqual(log.target_id, '3')

    def test_create_audit_log_skips_missing_action(self):
        self.assertIsNone(create_audit_log(target_type='page'))

    def test_list_requires_admin(self):
        self.client.authenticate_user(self.manager)
        self.assertEqual(self.client.get('/api/v1/audit-logs/').status_code, status.HTTP_403_FORBIDDEN)

    def test_list_with_filters(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'target_type': 'product'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['meta']['total'], 1)
        self.assertEqual(response.data['data'][0]['details'], 'Product deleted: Pump')

        response = self.client.get('/api/v1/audit-logs/', {'search': 'Home'})
        self.assertEqual(response.data['meta']['total'], 1)

    def test_list_paging(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'limit': 1, 'offset': 1})
        self.assertEqual(len(response.data['data']), 1)
        self.assertEqual(response.data['meta'], {'total': 2, 'limit': 1, 'offset': 1})

    def test_list_bad_limit(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'limit': 'many'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class HealthTests(TestCase):
    def test_health(self):
        response = AuthenticatedAPIClient().get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')

    def test_health_reports_database_failure(self):
        with patch.object(connection, 'cursor', side_effect=DatabaseError('connection refused')):
            response = AuthenticatedAPIClient().get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['status'], 'error')

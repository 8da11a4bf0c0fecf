"""
Test suite for accounts, authentication, settings, audit logs and search
"""
from datetime import timedelta
from unittest.mock import patch

from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from storefront.catalog.models import Product
from .models import User, Setting, AuditLog, AccountLockout
from .test_utils import APITestCase, TestDataFactory
from .utils import create_audit_log, generate_reference, ReferenceGenerationError
from .views import hash_reset_token, LOCKED_MESSAGE, RESET_REQUESTED_MESSAGE

STRONG_PASSWORD = 'Sh1rt!Maker2024'


class AuthTests(APITestCase):
    """Login, lockout and token endpoints"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user(username='jane', email='jane@test.com')

    def test_login_with_email(self):
        """Test login accepts an email address"""
        response = self.client.post('/api/v1/auth/login/', {'email': 'jane@test.com', 'password': 'testpass123'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_with_username(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'jane', 'password': 'testpass123'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_requires_credentials(self):
        response = self.client.post('/api/v1/auth/login/', {'email': 'jane@test.com'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email and password are required')

    def test_wrong_password_counts_failed_attempt(self):
        """Test a bad password answers 401 and is recorded against the lockout"""
        response = self.client.post('/api/v1/auth/login/', {'email': 'jane@test.com', 'password': 'nope'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid credentials')
        lockout = AccountLockout.objects.get(email='jane@test.com')
        self.assertEqual(lockout.failed_attempts, 1)

    def test_locked_account_is_rejected(self):
        """Test a locked email/IP pair gets 429 even with the right password"""
        AccountLockout.objects.create(
            email='jane@test.com',
            ip_address='127.0.0.1',
            failed_attempts=AccountLockout.MAX_FAILED_ATTEMPTS,
            locked_until=timezone.now() + timedelta(minutes=15)
        )
        response = self.client.post('/api/v1/auth/login/', {'email': 'jane@test.com', 'password': 'testpass123'})
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response.data['error'], LOCKED_MESSAGE)

    def test_successful_login_resets_attempts(self):
        AccountLockout.objects.create(email='jane@test.com', ip_address='127.0.0.1', failed_attempts=3)
        response = self.client.post('/api/v1/auth/login/', {'email': 'jane@test.com', 'password': 'testpass123'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(AccountLockout.objects.get(email='jane@test.com').failed_attempts, 0)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_current_user(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'jane@test.com')
        self.assertFalse(response.data['is_admin'])


class LockoutModelTests(TestCase):

    def test_locks_after_max_attempts(self):
        lockout = AccountLockout(email='A@Test.com', ip_address='10.0.0.1')
        for _ in range(AccountLockout.MAX_FAILED_ATTEMPTS):
            lockout.increment_failed_attempts()
        lockout.save()
        self.assertTrue(lockout.is_locked())
        self.assertEqual(lockout.email, 'a@test.com')

    def test_reset_unlocks(self):
        lockout = AccountLockout(email='a@test.com', ip_address='10.0.0.1',
                                 locked_until=timezone.now() + timedelta(minutes=5))
        lockout.reset_failed_attempts()
        self.assertFalse(lockout.is_locked())


@patch('storefront.core.views.send_registration_email')
class RegisterTests(APITestCase):

    def payload(self, **overrides):
        data = {
            'email': 'new@test.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
            'first_name': 'New',
            'last_name': 'Customer',
        }
        data.update(overrides)
        return data

    def test_register_creates_user(self, mock_email):
        """Test registration returns tokens and sends the welcome email"""
        response = self.client.post('/api/v1/auth/register/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['email'], 'new@test.com')
        self.assertTrue(User.objects.filter(email='new@test.com').exists())
        mock_email.assert_called_once()

    def test_duplicate_email(self, mock_email):
        TestDataFactory.create_user(email='new@test.com')
        response = self.client.post('/api/v1/auth/register/', self.payload(email='NEW@test.com'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email already registered')
        mock_email.assert_not_called()

    def test_weak_password(self, mock_email):
        response = self.client.post(
            '/api/v1/auth/register/',
            self.payload(password='password', password_confirm='password'),
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_password_mismatch(self, mock_email):
        response = self.client.post(
            '/api/v1/auth/register/', self.payload(password_confirm='Other!Pass123'), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PasswordResetTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user(email='reset@test.com')

    def test_forgot_password_requires_email(self):
        response = self.client.post('/api/v1/auth/forgot-password/', {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email is required')

    def test_forgot_password_sends_link(self):
        response = self.client.post('/api/v1/auth/forgot-password/', {'email': 'reset@test.com'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], RESET_REQUESTED_MESSAGE)
        self.assertEqual(len(mail.outbox), 1)
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.reset_token_hash)

    def test_forgot_password_unknown_email_looks_the_same(self):
        """Test the response does not reveal whether the account exists"""
        response = self.client.post('/api/v1/auth/forgot-password/', {'email': 'nobody@test.com'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], RESET_REQUESTED_MESSAGE)
        self.assertEqual(len(mail.outbox), 0)

    def test_reset_password_with_valid_token(self):
        self.user.reset_token_hash = hash_reset_token('abc123')
        self.user.reset_token_expires = timezone.now() + timedelta(hours=1)
        self.user.save()
        response = self.client.post('/api/v1/auth/reset-password/', {'token': 'abc123', 'password': STRONG_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password(STRONG_PASSWORD))
        self.assertIsNone(self.user.reset_token_hash)
        self.assertTrue(AuditLog.objects.filter(action='password_reset').exists())

    def test_reset_password_expired_token(self):
        self.user.reset_token_hash = hash_reset_token('abc123')
        self.user.reset_token_expires = timezone.now() - timedelta(minutes=1)
        self.user.save()
        response = self.client.post('/api/v1/auth/reset-password/', {'token': 'abc123', 'password': STRONG_PASSWORD})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid or expired reset token')

    def test_reset_password_missing_fields(self):
        response = self.client.post('/api/v1/auth/reset-password/', {'token': 'abc123'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Token and password are required')


class ProfileTests(APITestCase):

    def test_update_profile(self):
        user = self.login_user()
        payload = {
            'first_name': 'Jane',
            'last_name': 'Smith',
            'phone': '07700900123',
            'address': {
                'street': '1 High Street',
                'city': 'London',
                'county': 'Greater London',
                'postcode': 'se7 8ss',
                'country': 'United Kingdom',
            },
        }
        response = self.client.put('/api/v1/users/profile/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.last_name, 'Smith')
        self.assertEqual(user.postcode, 'SE7 8SS')

    def test_invalid_postcode(self):
        self.login_user()
        payload = {
            'first_name': 'Jane',
            'last_name': 'Smith',
            'phone': '07700900123',
            'address': {'street': 'x', 'city': 'y', 'county': 'z', 'postcode': 'NOPE', 'country': 'UK'},
        }
        response = self.client.put('/api/v1/users/profile/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdminUserTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_non_admin_is_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters_by_role(self):
        TestDataFactory.create_user(email='customer@test.com')
        response = self.client.get('/api/v1/admin/users/', {'role': 'customer'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['email'] for u in response.data], ['customer@test.com'])

    def test_create_user_is_audited(self):
        response = self.client.post('/api/v1/admin/users/', {
            'email': 'staff@test.com',
            'password': STRONG_PASSWORD,
            'password_confirm': STRONG_PASSWORD,
            'is_staff': True,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.get(email='staff@test.com').is_staff)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='User').exists())

    def test_update_ignores_password(self):
        user = TestDataFactory.create_user()
        response = self.client.patch(f'/api/v1/admin/users/{user.id}/',
                                     {'first_name': 'Changed', 'password': 'ignored'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.first_name, 'Changed')
        self.assertTrue(user.check_password('testpass123'))

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/admin/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'You cannot delete your own account')

    def test_delete_user(self):
        user = TestDataFactory.create_user()
        response = self.client.delete(f'/api/v1/admin/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=user.id).exists())

    def test_set_password(self):
        user = TestDataFactory.create_user()
        response = self.client.put(f'/api/v1/admin/users/{user.id}/password/',
                                   {'new_password': STRONG_PASSWORD}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.check_password(STRONG_PASSWORD))
        self.assertTrue(AuditLog.objects.filter(action='password_change').exists())

    def test_set_password_required(self):
        user = TestDataFactory.create_user()
        response = self.client.put(f'/api/v1/admin/users/{user.id}/password/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'New password is required')


class SettingAndAuditTests(APITestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_setting_crud(self):
        response = self.client.post('/api/v1/admin/settings/', {'key': 'vat_rate', 'value': '0.20'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        setting_id = response.data['id']

        response = self.client.patch(f'/api/v1/admin/settings/{setting_id}/', {'value': '0.05'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Setting.objects.get(pk=setting_id).value, '0.05')

        response = self.client.delete(f'/api/v1/admin/settings/{setting_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_audit_log_filters(self):
        create_audit_log(user=self.admin, action='refund', model_name='Order', object_id=1, object_reference='SH-1')
        create_audit_log(user=self.admin, action='create', model_name='Product', object_id=2)
        response = self.client.get('/api/v1/admin/audit-logs/', {'action': 'refund'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['object_reference'], 'SH-1')

    def test_audit_log_date_filter(self):
        create_audit_log(user=self.admin, action='refund', model_name='Order', object_id=1)
        today = timezone.localdate().isoformat()
        response = self.client.get('/api/v1/admin/audit-logs/', {'date_from': today, 'date_to': today})
        self.assertEqual(len(response.data), 1)
        for value in ('2024-02-30', 'yesterday'):
            response = self.client.get('/api/v1/admin/audit-logs/', {'date_from': value})
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'Dates must be in YYYY-MM-DD format')

    def test_audit_log_skips_incomplete_entries(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Order'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_global_search(self):
        TestDataFactory.create_product(name='Harbour Hoodie')
        TestDataFactory.create_supply(name='Harbour blanks')
        response = self.client.get('/api/v1/admin/search/', {'q': 'harbour'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['products']), 1)
        self.assertEqual(len(response.data['supplies']), 1)
        self.assertEqual(response.data['orders'], [])

    def test_empty_search(self):
        response = self.client.get('/api/v1/admin/search/')
        self.assertEqual(response.data['products'], [])


class ReferenceTests(TestCase):

    def test_sequential_reference(self):
        reference = generate_reference(Product, 'PR', field='name')
        self.assertRegex(reference, r'^PR-\d{6}-0001$')

    @patch('storefront.core.utils.random.randint', return_value=1)
    def test_gives_up_after_repeated_collisions(self, mock_randint):
        TestDataFactory.create_product(name=f'PR-{timezone.localtime():%y%m%d}-0003')
        TestDataFactory.create_product(name=f'PR-{timezone.localtime():%y%m%d}-0001')
        with self.assertRaises(ReferenceGenerationError):
            generate_reference(Product, 'PR', field='name')

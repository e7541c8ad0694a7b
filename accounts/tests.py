from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from epos.permissions import ADMIN_ONLY, PUBLIC, STAFF, authorize
from .models import AccessToken, Role, User


def make_user(username, role, password='password'):
    return User.objects.create_user(username=username, password=password, name=username.title(), role=role)


def authenticate(client, user):
    _, token = AccessToken.objects.issue(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return token


class AuthorizeTests(TestCase):
    """Test the role check used by every gated route"""

    def test_admin_allowed_on_admin_routes(self):
        self.assertTrue(authorize(Role.ADMIN, ADMIN_ONLY))

    def test_cashier_refused_on_admin_routes(self):
        self.assertFalse(authorize(Role.CASHIER, ADMIN_ONLY))

    def test_staff_routes_accept_both_roles(self):
        self.assertTrue(authorize(Role.ADMIN, STAFF))
        self.assertTrue(authorize(Role.CASHIER, STAFF))

    def test_public_routes_accept_anyone(self):
        self.assertTrue(authorize(None, PUBLIC))


class AccessTokenTests(TestCase):
    """Test bearer token issue and lookup"""

    def setUp(self):
        self.user = make_user('cashier', Role.CASHIER)

    def test_issued_token_resolves_to_user(self):
        token, plaintext = AccessToken.objects.issue(self.user)

        found = AccessToken.objects.find(plaintext)

        self.assertEqual(found, token)
        self.assertEqual(found.user, self.user)

    def test_only_digest_is_stored(self):
        token, plaintext = AccessToken.objects.issue(self.user)
        secret = plaintext.split('|', 1)[1]

        self.assertNotEqual(token.key_digest, secret)
        self.assertEqual(len(token.key_digest), 64)

    def test_wrong_secret_is_rejected(self):
        token, _ = AccessToken.objects.issue(self.user)

        self.assertIsNone(AccessToken.objects.find(f'{token.pk}|not-the-secret'))

    def test_malformed_tokens_are_rejected(self):
        for plaintext in ['', 'abc', '|secret', 'x|secret', '12|']:
            self.assertIsNone(AccessToken.objects.find(plaintext))


class AuthAPITests(APITestCase):
    """Test login, logout and the current-user endpoint"""

    def setUp(self):
        cache.clear()
        self.user = make_user('cashier', Role.CASHIER, password='secret123')

    def test_login_returns_token_and_user(self):
        url = reverse('login')
        response = self.client.post(url, {'username': 'cashier', 'password': 'secret123'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)
        self.assertEqual(response.data['user']['username'], 'cashier')
        self.assertEqual(response.data['user']['role'], 'Cashier')
        self.assertNotIn('password', response.data['user'])

        # Login is on the audit trail
        log = AuditLog.objects.get()
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.action, 'Logged in')

    def test_token_from_login_authenticates(self):
        response = self.client.post(reverse('login'), {'username': 'cashier', 'password': 'secret123'}, format='json')
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")

        response = self.client.get(reverse('me'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.user.id)

    def test_login_with_wrong_password(self):
        response = self.client.post(reverse('login'), {'username': 'cashier', 'password': 'nope'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid credentials')
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_login_requires_fields(self):
        response = self.client.post(reverse('login'), {'username': 'cashier'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('password', response.data['errors'])

    def test_me_requires_authentication(self):
        response = self.client.get(reverse('me'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response['WWW-Authenticate'], 'Bearer')

    def test_invalid_token_is_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer 999|bogus')

        response = self.client.get(reverse('me'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_revokes_current_token_only(self):
        authenticate(self.client, self.user)
        _, other = AccessToken.objects.issue(self.user)

        response = self.client.post(reverse('logout'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(AccessToken.objects.filter(user=self.user).count(), 1)
        self.assertIsNotNone(AccessToken.objects.find(other))
        self.assertTrue(AuditLog.objects.filter(user=self.user, action='Logged out').exists())

        # The revoked token no longer works
        response = self.client.get(reverse('me'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_all_revokes_every_token(self):
        authenticate(self.client, self.user)
        AccessToken.objects.issue(self.user)
        AccessToken.objects.issue(self.user)

        response = self.client.post(reverse('logout_all'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(AccessToken.objects.filter(user=self.user).count(), 0)
        self.assertTrue(AuditLog.objects.filter(action='Logged out from all devices').exists())


class UserAPITests(APITestCase):
    """Test user management by admins"""

    def setUp(self):
        self.admin = make_user('admin', Role.ADMIN)
        self.cashier = make_user('cashier', Role.CASHIER)
        authenticate(self.client, self.admin)

    def test_create_user(self):
        url = reverse('user_list')
        data = {
            'name': 'Ana Cruz',
            'username': 'ana',
            'password': 'secret1',
            'role': 'Cashier',
            'contact_number': '09171234567',
        }

        response = self.client.post(url, data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('password', response.data)

        user = User.objects.get(username='ana')
        self.assertEqual(user.role, Role.CASHIER)
        self.assertNotEqual(user.password, 'secret1')
        self.assertTrue(user.check_password('secret1'))

        log = AuditLog.objects.get()
        self.assertEqual(log.user, self.admin)
        self.assertEqual(log.action, f'Created User #{user.id} (ana)')

    def test_create_user_strips_tags(self):
        data = {'name': ' <b>Ben</b> ', 'username': 'ben', 'password': 'secret1', 'role': 'Admin'}

        response = self.client.post(reverse('user_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Ben')

    def test_duplicate_username(self):
        data = {'name': 'Other', 'username': 'cashier', 'password': 'secret1', 'role': 'Cashier'}

        response = self.client.post(reverse('user_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['errors']['username'], ['This username is already taken.'])
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_short_password_and_bad_role(self):
        data = {'name': 'Short', 'username': 'short', 'password': '12345', 'role': 'Waiter'}

        response = self.client.post(reverse('user_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('password', response.data['errors'])
        self.assertIn('role', response.data['errors'])

    def test_cashier_cannot_manage_users(self):
        authenticate(self.client, self.cashier)
        data = {'name': 'Sneaky', 'username': 'sneaky', 'password': 'secret1', 'role': 'Admin'}

        response = self.client.post(reverse('user_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(User.objects.filter(username='sneaky').exists())
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_update_without_password_keeps_hash(self):
        old_hash = self.cashier.password
        url = reverse('user_detail', kwargs={'user_id': self.cashier.id})

        response = self.client.put(url, {'name': 'Head Cashier'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.cashier.refresh_from_db()
        self.assertEqual(self.cashier.name, 'Head Cashier')
        self.assertEqual(self.cashier.password, old_hash)
        self.assertEqual(AuditLog.objects.get().action, f'Updated User #{self.cashier.id} (cashier): name=Head Cashier')

    def test_update_password_rehashes(self):
        url = reverse('user_detail', kwargs={'user_id': self.cashier.id})

        response = self.client.patch(url, {'password': 'newsecret'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.cashier.refresh_from_db()
        self.assertTrue(self.cashier.check_password('newsecret'))

        # The new password never reaches the audit trail
        log = AuditLog.objects.get()
        self.assertNotIn('newsecret', log.action)
        self.assertIn('password=<changed>', log.action)

    def test_update_keeps_own_username(self):
        url = reverse('user_detail', kwargs={'user_id': self.cashier.id})

        response = self.client.put(url, {'username': 'cashier'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        # Nothing changed, nothing recorded
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_delete_user(self):
        AccessToken.objects.issue(self.cashier)
        url = reverse('user_detail', kwargs={'user_id': self.cashier.id})

        response = self.client.delete(url)

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(id=self.cashier.id).exists())
        self.assertFalse(AccessToken.objects.filter(user_id=self.cashier.id).exists())
        self.assertEqual(AuditLog.objects.get().action, f'Deleted User #{self.cashier.id} (cashier)')

    def test_get_missing_user(self):
        response = self.client.get(reverse('user_detail', kwargs={'user_id': 9999}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Not found.')


class SeedStaffCommandTests(TestCase):
    def test_seed_staff(self):
        call_command('seed_staff', '--password', 'secret99', stdout=StringIO())

        admin = User.objects.get(username='admin')
        self.assertEqual(admin.role, Role.ADMIN)
        self.assertTrue(admin.check_password('secret99'))
        self.assertEqual(User.objects.get(username='cashier').role, Role.CASHIER)
        self.assertEqual(AuditLog.objects.filter(user__isnull=True).count(), 2)

        # Existing accounts are left alone
        call_command('seed_staff', stdout=StringIO())
        self.assertEqual(User.objects.count(), 2)
        self.assertTrue(User.objects.get(username='admin').check_password('secret99'))

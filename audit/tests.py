from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role, User
from menu.models import Menu

from .models import AuditLog
from .recorder import changed_fields, describe_changes, record


class RecorderTests(TestCase):
    """Test how entries are written and described"""

    def setUp(self):
        self.admin = User.objects.create_user(username='admin', password='password', name='Store Admin',
                                              role=Role.ADMIN)

    def test_record_with_user(self):
        entry = record(self.admin, 'Created Menu #1 (Adobo)')

        self.assertEqual(entry.user, self.admin)
        self.assertEqual(entry.actor_name, 'Store Admin')
        self.assertEqual(entry.actor_role, 'Admin')
        self.assertIsNotNone(entry.timestamp)

    def test_record_system_actor(self):
        entry = record(None, 'Seeded menu')

        self.assertIsNone(entry.user)
        self.assertEqual(entry.actor_name, 'System')
        self.assertIsNone(entry.actor_role)

    def test_long_actions_are_truncated(self):
        entry = record(None, 'x' * 300)

        self.assertEqual(len(entry.action), 255)

    def test_entries_outlive_their_user(self):
        cashier = User.objects.create_user(username='cashier', password='password', role=Role.CASHIER)
        entry = record(cashier, 'Logged in')

        cashier.delete()

        entry.refresh_from_db()
        self.assertIsNone(entry.user)
        self.assertEqual(entry.action, 'Logged in')

    def test_describe_changes(self):
        description = describe_changes({
            'status': 'preparing',
            'price': Decimal('12.5'),
            'password': 'hunter22',
            'customer_name': None,
        })

        self.assertEqual(description, 'customer_name=null, password=<changed>, price=12.50, status=preparing')

    def test_changed_fields(self):
        menu = Menu.objects.create(name='Adobo', price=Decimal('125.00'), category='Mains')
        other = Menu.objects.create(name='Tapa', price=Decimal('150.00'), category='Mains')

        changes = changed_fields(menu, {'name': 'Adobo', 'price': Decimal('130.00'), 'category': 'Mains'})
        self.assertEqual(changes, {'price': Decimal('130.00')})

        # Related objects compare by primary key
        holder = type('Holder', (), {'menu': menu})()
        self.assertEqual(changed_fields(holder, {'menu': menu}), {})
        self.assertEqual(changed_fields(holder, {'menu': other}), {'menu': other})


class AuditLogAPITests(APITestCase):
    """Test reading the audit trail"""

    def setUp(self):
        self.admin = User.objects.create_user(username='admin', password='password', name='Store Admin',
                                              role=Role.ADMIN)
        self.cashier = User.objects.create_user(username='cashier', password='password', name='Front Cashier',
                                                role=Role.CASHIER)
        now = timezone.now()
        self.old = record(self.cashier, 'Created Order #1', at=now - timedelta(days=3))
        self.middle = record(None, 'Created Customer #1 (QR-1)', at=now - timedelta(days=1))
        self.new = record(self.admin, 'Updated Menu #1 (Adobo): price=130.00', at=now)

    def test_list_is_newest_first(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit_log_list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([entry['id'] for entry in response.data['data']],
                         [self.new.id, self.middle.id, self.old.id])
        self.assertEqual(response.data['total'], 3)
        self.assertEqual(response.data['from'], 1)
        self.assertEqual(response.data['to'], 3)

        first = response.data['data'][0]
        self.assertEqual(first['user_id'], self.admin.id)
        self.assertEqual(first['user_name'], 'Store Admin')
        self.assertEqual(first['user_role'], 'Admin')
        self.assertEqual(response.data['data'][1]['user_name'], 'System')

    def test_pagination(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit_log_list'), {'per_page': 2, 'page': 2})

        self.assertEqual(response.data['current_page'], 2)
        self.assertEqual(response.data['last_page'], 2)
        self.assertEqual(response.data['per_page'], 2)
        self.assertEqual([entry['id'] for entry in response.data['data']], [self.old.id])

    def test_page_past_the_end_is_empty(self):
        """Test a page number beyond the last page returns an empty envelope"""
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit_log_list'), {'per_page': 2, 'page': 5})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], [])
        self.assertEqual(response.data['current_page'], 5)
        self.assertEqual(response.data['last_page'], 2)
        self.assertEqual(response.data['total'], 3)
        self.assertIsNone(response.data['from'])
        self.assertIsNone(response.data['to'])

    def test_invalid_page_number(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit_log_list'), {'page': 'abc'})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_filters(self):
        self.client.force_authenticate(user=self.admin)
        url = reverse('audit_log_list')

        response = self.client.get(url, {'user_id': self.cashier.id})
        self.assertEqual([entry['id'] for entry in response.data['data']], [self.old.id])

        response = self.client.get(url, {'action': 'customer'})
        self.assertEqual([entry['id'] for entry in response.data['data']], [self.middle.id])

        since = (timezone.localdate() - timedelta(days=2)).isoformat()
        response = self.client.get(url, {'date_from': since})
        self.assertEqual(response.data['total'], 2)

    def test_bad_date_range(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit_log_list'), {'date_from': '2024-05-02', 'date_to': '2024-05-01'})

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('date_to', response.data['errors'])

    def test_detail(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit_log_detail', kwargs={'log_id': self.middle.id}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['action'], 'Created Customer #1 (QR-1)')
        self.assertIsNone(response.data['user_id'])

        response = self.client.get(reverse('audit_log_detail', kwargs={'log_id': 9999}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cashier_cannot_read(self):
        self.client.force_authenticate(user=self.cashier)

        response = self.client.get(reverse('audit_log_list'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_trail_is_read_only(self):
        self.client.force_authenticate(user=self.admin)
        url = reverse('audit_log_detail', kwargs={'log_id': self.old.id})

        self.assertEqual(self.client.delete(url).status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(self.client.post(reverse('audit_log_list'), {'action': 'x'}).status_code,
                         status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertEqual(AuditLog.objects.count(), 3)


class AuditAtomicityTests(APITestCase):
    """Test a mutation never outlives a failed audit write"""

    def setUp(self):
        self.admin = User.objects.create_user(username='admin', password='password', role=Role.ADMIN)
        self.client.force_authenticate(user=self.admin)

    def test_failed_audit_write_rolls_back_mutation(self):
        data = {'name': 'Sinigang', 'price': '180.00', 'category': 'Soups', 'availability_status': True}

        with mock.patch.object(AuditLog.objects, 'create', side_effect=RuntimeError('audit store down')):
            response = self.client.post(reverse('menu_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'message': 'Server Error'})
        self.assertFalse(Menu.objects.exists())
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_failed_audit_write_keeps_previous_state(self):
        menu = Menu.objects.create(name='Adobo', price=Decimal('125.00'), category='Mains')
        url = reverse('menu_detail', kwargs={'menu_id': menu.id})

        with mock.patch.object(AuditLog.objects, 'create', side_effect=RuntimeError('audit store down')):
            response = self.client.patch(url, {'price': '150.00'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        menu.refresh_from_db()
        self.assertEqual(menu.price, Decimal('125.00'))

from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role, User
from audit.models import AuditLog
from epos.exceptions import Conflict
from orders.models import Order

from . import services
from .models import Customer


class CustomerModelTests(TestCase):
    def test_display_name_defaults_to_guest(self):
        customer = Customer.objects.create(table_number='3', order_reference='QR-3-1')

        self.assertEqual(customer.display_name, 'Guest')
        self.assertEqual(str(customer), 'Guest (Table 3)')

    def test_display_name_uses_customer_name(self):
        customer = Customer.objects.create(customer_name='Maria', table_number='3', order_reference='QR-3-2')

        self.assertEqual(customer.display_name, 'Maria')


class CustomerAPITests(APITestCase):
    """Test customer registration and lookup"""

    def setUp(self):
        self.cashier = User.objects.create_user(username='cashier', password='password',
                                                name='Front Cashier', role=Role.CASHIER)

    def test_guest_registers_from_qr(self):
        """Test an anonymous guest can register; the entry is attributed to the system"""
        data = {'table_number': '5', 'order_reference': 'QR-5-1700000000'}

        response = self.client.post(reverse('customer_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['customer_name'])
        self.assertEqual(response.data['display_name'], 'Guest')

        log = AuditLog.objects.get()
        self.assertIsNone(log.user)
        self.assertEqual(log.actor_name, 'System')
        self.assertEqual(log.action, f"Created Customer #{response.data['id']} (QR-5-1700000000)")

    def test_cashier_registers_walk_in(self):
        self.client.force_authenticate(user=self.cashier)
        data = {'customer_name': ' <em>Pedro</em> ', 'table_number': '2', 'order_reference': 'C-2-1'}

        response = self.client.post(reverse('customer_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_name'], 'Pedro')
        self.assertEqual(AuditLog.objects.get().user, self.cashier)

    def test_duplicate_order_reference(self):
        Customer.objects.create(table_number='5', order_reference='QR-5-1')

        response = self.client.post(reverse('customer_list'),
                                    {'table_number': '6', 'order_reference': 'QR-5-1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['errors']['order_reference'], ['This order reference is already used.'])
        self.assertEqual(response.data['message'], 'This order reference is already used.')
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_missing_table_number(self):
        response = self.client.post(reverse('customer_list'), {'order_reference': 'QR-1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['errors']['table_number'], ['Table number is required (comes from QR).'])

    def test_listing_requires_staff(self):
        Customer.objects.create(customer_name='Maria', table_number='3', order_reference='QR-3-1')
        Customer.objects.create(table_number='4', order_reference='QR-4-1')

        response = self.client.get(reverse('customer_list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(user=self.cashier)
        response = self.client.get(reverse('customer_list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.get(reverse('customer_list'), {'search': 'mar'})
        self.assertEqual([c['customer_name'] for c in response.data], ['Maria'])

    def test_update_customer(self):
        customer = Customer.objects.create(table_number='3', order_reference='QR-3-1')
        self.client.force_authenticate(user=self.cashier)
        url = reverse('customer_detail', kwargs={'customer_id': customer.id})

        response = self.client.patch(url, {'customer_name': 'Maria', 'order_reference': 'QR-3-1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['display_name'], 'Maria')
        self.assertEqual(AuditLog.objects.get().action, f'Updated Customer #{customer.id}: customer_name=Maria')

    def test_customers_cannot_be_deleted_over_http(self):
        customer = Customer.objects.create(table_number='3', order_reference='QR-3-1')
        self.client.force_authenticate(user=self.cashier)

        response = self.client.delete(reverse('customer_detail', kwargs={'customer_id': customer.id}))

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertTrue(Customer.objects.filter(pk=customer.pk).exists())


class CustomerServiceTests(TestCase):
    def test_delete_customer(self):
        customer = Customer.objects.create(table_number='3', order_reference='QR-3-1')
        customer_id = customer.id

        services.delete_customer(None, customer)

        self.assertFalse(Customer.objects.exists())
        self.assertEqual(AuditLog.objects.get().action, f'Deleted Customer #{customer_id} (QR-3-1)')

    def test_delete_customer_with_orders(self):
        customer = Customer.objects.create(table_number='3', order_reference='QR-3-1')
        Order.objects.create(customer=customer, order_type='dine-in', order_source='QR',
                             total_amount=Decimal('0.00'))

        with self.assertRaises(Conflict):
            services.delete_customer(None, customer)

        self.assertTrue(Customer.objects.filter(pk=customer.pk).exists())
        self.assertEqual(AuditLog.objects.count(), 0)

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role, User
from audit.models import AuditLog
from customers.models import Customer
from orders.models import Order, OrderItem

from .models import Menu


class MenuAPITests(APITestCase):
    """Test the menu catalogue endpoints"""

    def setUp(self):
        self.admin = User.objects.create_user(username='admin', password='password', role=Role.ADMIN)
        self.cashier = User.objects.create_user(username='cashier', password='password', role=Role.CASHIER)

        self.adobo = Menu.objects.create(name='Chicken Adobo', price=Decimal('125.00'), category='Mains')
        self.lechon = Menu.objects.create(name='Lechon', price=Decimal('300.00'), category='Mains',
                                          availability_status=False)

    def test_guest_sees_available_items_only(self):
        """Test anonymous menu listing hides unavailable items"""
        response = self.client.get(reverse('menu_list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['name'] for item in response.data], ['Chicken Adobo'])

        response = self.client.get(reverse('menu_detail', kwargs={'menu_id': self.lechon.id}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_staff_see_everything(self):
        self.client.force_authenticate(user=self.cashier)

        response = self.client.get(reverse('menu_list'))
        self.assertEqual(len(response.data), 2)

        response = self.client.get(reverse('menu_list'), {'available': 'false'})
        self.assertEqual([item['name'] for item in response.data], ['Lechon'])

    def test_create_menu_item(self):
        """Test text fields are sanitized on create"""
        self.client.force_authenticate(user=self.admin)
        data = {
            'name': '  <b>Sinigang</b> ',
            'description': '<script>alert(1)</script>Sour soup',
            'price': '180.00',
            'category': 'Soups',
            'availability_status': True,
        }

        response = self.client.post(reverse('menu_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Sinigang')
        self.assertNotIn('<script>', response.data['description'])
        self.assertEqual(response.data['price'], '180.00')

        menu = Menu.objects.get(name='Sinigang')
        self.assertEqual(AuditLog.objects.get().action, f'Created Menu #{menu.id} (Sinigang)')

    def test_create_menu_validation(self):
        self.client.force_authenticate(user=self.admin)
        data = {'name': '<i></i>', 'price': '-1.00', 'category': 'Mains'}

        response = self.client.post(reverse('menu_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        errors = response.data['errors']
        self.assertIn('name', errors)
        self.assertEqual(errors['price'], ['Price must be zero or greater.'])
        self.assertEqual(errors['availability_status'], ['Availability status is required.'])

    def test_update_menu_item(self):
        self.client.force_authenticate(user=self.admin)
        url = reverse('menu_detail', kwargs={'menu_id': self.lechon.id})

        response = self.client.patch(url, {'availability_status': True, 'price': '320.00'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['availability_status'])
        self.assertEqual(AuditLog.objects.get().action,
                         f'Updated Menu #{self.lechon.id} (Lechon): availability_status=True, price=320.00')

    def test_cashier_cannot_change_menu(self):
        """Test role gating leaves no trace in the audit trail"""
        self.client.force_authenticate(user=self.cashier)

        response = self.client.delete(reverse('menu_detail', kwargs={'menu_id': self.adobo.id}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Forbidden: insufficient role')

        response = self.client.post(reverse('menu_list'), {'name': 'X', 'price': '1.00', 'category': 'Y',
                                                           'availability_status': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.assertTrue(Menu.objects.filter(pk=self.adobo.pk).exists())
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_guest_cannot_change_menu(self):
        response = self.client.delete(reverse('menu_detail', kwargs={'menu_id': self.adobo.id}))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_delete_menu_item(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.delete(reverse('menu_detail', kwargs={'menu_id': self.adobo.id}))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Menu.objects.filter(pk=self.adobo.pk).exists())
        self.assertEqual(AuditLog.objects.get().action, f'Deleted Menu #{self.adobo.id} (Chicken Adobo)')

    def test_delete_ordered_menu_item_conflicts(self):
        """Test a menu item on an order cannot be deleted"""
        customer = Customer.objects.create(table_number='1', order_reference='C-1-1')
        order = Order.objects.create(customer=customer, order_type='dine-in', order_source='COUNTER')
        OrderItem.objects.create(order=order, menu=self.adobo, quantity=1, price=self.adobo.price)
        self.client.force_authenticate(user=self.admin)

        response = self.client.delete(reverse('menu_detail', kwargs={'menu_id': self.adobo.id}))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('message', response.data)
        self.assertTrue(Menu.objects.filter(pk=self.adobo.pk).exists())
        self.assertEqual(OrderItem.objects.count(), 1)
        self.assertEqual(AuditLog.objects.count(), 0)


class SeedMenuCommandTests(TestCase):
    def test_seed_menu(self):
        call_command('seed_menu', stdout=StringIO())
        seeded = Menu.objects.count()

        self.assertGreater(seeded, 0)
        # Seeding is attributed to the system actor
        self.assertEqual(AuditLog.objects.filter(user__isnull=True).count(), seeded)

        # Running it again does not duplicate anything
        call_command('seed_menu', stdout=StringIO())
        self.assertEqual(Menu.objects.count(), seeded)

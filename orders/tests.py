from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from accounts.models import AccessToken, Role, User
from audit.models import AuditLog
from customers.models import Customer
from epos.exceptions import Conflict
from menu.models import Menu
from payment.models import Payment

from . import services
from .models import Order, OrderItem, OrderStatus, STATUS_FLOW, is_legal_transition, next_status


class StatusFlowTests(TestCase):
    """Test the pending -> preparing -> ready -> served progression"""

    def test_next_status_follows_flow(self):
        """Each status advances to the one after it"""
        self.assertEqual(next_status(OrderStatus.PENDING), OrderStatus.PREPARING)
        self.assertEqual(next_status(OrderStatus.PREPARING), OrderStatus.READY)
        self.assertEqual(next_status(OrderStatus.READY), OrderStatus.SERVED)

    def test_served_is_terminal(self):
        """Advancing a served order leaves it served"""
        self.assertEqual(next_status(OrderStatus.SERVED), OrderStatus.SERVED)

    def test_next_status_is_in_flow(self):
        for current in STATUS_FLOW:
            self.assertIn(next_status(current), STATUS_FLOW)

    def test_legal_transitions(self):
        """Only staying put or one step forward is allowed"""
        self.assertTrue(is_legal_transition('pending', 'pending'))
        self.assertTrue(is_legal_transition('pending', 'preparing'))
        self.assertFalse(is_legal_transition('pending', 'ready'))
        self.assertFalse(is_legal_transition('pending', 'served'))
        self.assertFalse(is_legal_transition('ready', 'preparing'))
        self.assertFalse(is_legal_transition('served', 'pending'))


class OrderServiceTests(TestCase):
    """Test order totals, transitions and audit entries at the service layer"""

    def setUp(self):
        self.cashier = User.objects.create_user(username='cashier', password='password',
                                                name='Front Cashier', role=Role.CASHIER)
        self.customer = Customer.objects.create(table_number='5', order_reference='QR-5-1')
        self.adobo = Menu.objects.create(name='Chicken Adobo', price=Decimal('125.00'), category='Mains')
        self.rice = Menu.objects.create(name='Garlic Rice', price=Decimal('35.50'), category='Sides')

    def create_order(self, **kwargs):
        kwargs.setdefault('items', [{'menu': self.adobo, 'quantity': 2}])
        return services.create_order(
            self.cashier,
            customer=self.customer,
            order_type='dine-in',
            order_source='qr',
            **kwargs,
        )

    def test_calculate_total(self):
        """Total is the sum of quantity x price"""
        items = [
            OrderItem(quantity=2, price=Decimal('125.00')),
            OrderItem(quantity=3, price=Decimal('35.50')),
        ]
        self.assertEqual(services.calculate_total(items), Decimal('356.50'))
        self.assertEqual(services.calculate_total([]), Decimal('0.00'))

    def test_create_order_computes_total(self):
        order = self.create_order(items=[
            {'menu': self.adobo, 'quantity': 2},
            {'menu': self.rice, 'quantity': 3},
        ])

        self.assertEqual(order.total_amount, Decimal('356.50'))
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(order.order_source, 'QR')
        # The actor handles the order unless someone else is named
        self.assertEqual(order.handled_by, self.cashier)

    def test_create_order_snapshots_price(self):
        """Item price is captured at order time and survives menu price changes"""
        order = self.create_order()
        self.adobo.price = Decimal('150.00')
        self.adobo.save()

        item = order.items.get()
        self.assertEqual(item.price, Decimal('125.00'))
        self.assertEqual(item.subtotal, Decimal('250.00'))

    def test_create_order_with_explicit_price(self):
        order = self.create_order(items=[{'menu': self.adobo, 'quantity': 1, 'price': Decimal('100.00')}])

        self.assertEqual(order.total_amount, Decimal('100.00'))

    def test_create_order_without_items(self):
        with self.assertRaises(ValidationError):
            self.create_order(items=[])
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_create_order_records_one_entry(self):
        order = self.create_order()

        log = AuditLog.objects.get()
        self.assertEqual(log.user, self.cashier)
        self.assertEqual(log.action, f'Created Order #{order.id} for Customer #{self.customer.id} (1 items, total 250.00)')

    def test_system_actor(self):
        """Orders created without an actor are attributed to the system"""
        order = services.create_order(None, customer=self.customer, order_type='take-out',
                                      order_source='COUNTER', items=[{'menu': self.rice, 'quantity': 1}])

        self.assertIsNone(order.handled_by)
        log = AuditLog.objects.get()
        self.assertIsNone(log.user)
        self.assertEqual(log.actor_name, 'System')

    def test_advance_order(self):
        order = self.create_order()

        services.advance_order(self.cashier, order)
        services.advance_order(self.cashier, order)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.READY)
        self.assertEqual(AuditLog.objects.filter(action__startswith='Updated Order').count(), 2)

    def test_advance_served_order_is_noop(self):
        """A served order stays served and nothing is recorded"""
        order = self.create_order(status=OrderStatus.SERVED)
        entries = AuditLog.objects.count()

        services.advance_order(self.cashier, order)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.SERVED)
        self.assertEqual(AuditLog.objects.count(), entries)

    def test_stale_update_conflicts(self):
        """A write based on an outdated read is refused"""
        order = self.create_order()
        stale = Order.objects.get(pk=order.pk)

        services.update_order(self.cashier, order, {'status': OrderStatus.PREPARING})
        entries = AuditLog.objects.count()

        with self.assertRaises(Conflict):
            services.update_order(self.cashier, stale, {'status': OrderStatus.PREPARING})

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.PREPARING)
        self.assertEqual(AuditLog.objects.count(), entries)

    def test_update_without_changes_records_nothing(self):
        order = self.create_order()
        entries = AuditLog.objects.count()

        services.update_order(self.cashier, order, {'status': OrderStatus.PENDING, 'order_type': 'dine-in'})

        self.assertEqual(AuditLog.objects.count(), entries)

    def test_deleting_handler_keeps_order(self):
        """Orders outlive the staff account that handled them"""
        order = self.create_order()

        self.cashier.delete()

        order.refresh_from_db()
        self.assertIsNone(order.handled_by)
        self.assertEqual(order.items.count(), 1)

    def test_delete_order_cascades(self):
        order = self.create_order()
        Payment.objects.create(order=order, amount_paid=Decimal('250.00'),
                               payment_method='cash', payment_status='completed')
        order_id = order.id

        services.delete_order(self.cashier, order)

        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertFalse(Payment.objects.exists())
        # Menu items and the customer are untouched
        self.assertEqual(Menu.objects.count(), 2)
        self.assertTrue(Customer.objects.filter(pk=self.customer.pk).exists())
        self.assertEqual(AuditLog.objects.first().action, f'Deleted Order #{order_id}')


class OrderAPITests(APITestCase):
    """Test the order endpoints"""

    def setUp(self):
        self.cashier = User.objects.create_user(username='cashier', password='password',
                                                name='Front Cashier', role=Role.CASHIER)
        _, token = AccessToken.objects.issue(self.cashier)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        self.customer = Customer.objects.create(customer_name='Juan', table_number='5', order_reference='QR-5-1')
        self.adobo = Menu.objects.create(name='Chicken Adobo', price=Decimal('125.00'), category='Mains')
        self.halo = Menu.objects.create(name='Halo-Halo', price=Decimal('95.00'), category='Desserts')
        self.sold_out = Menu.objects.create(name='Lechon', price=Decimal('300.00'), category='Mains',
                                            availability_status=False)

    def order_payload(self, **overrides):
        data = {
            'customer_id': self.customer.id,
            'order_type': 'dine-in',
            'order_source': 'QR',
            'items': [{'menu_id': self.adobo.id, 'quantity': 2}],
        }
        data.update(overrides)
        return data

    def create_order(self, **overrides):
        response = self.client.post(reverse('order_list'), self.order_payload(**overrides), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data

    def test_create_order(self):
        """Test creating an order with items"""
        data = self.create_order()

        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['next_status'], 'preparing')
        self.assertEqual(data['total_amount'], '250.00')
        self.assertEqual(data['customer']['customer_name'], 'Juan')
        self.assertEqual(data['handled_by'], self.cashier.id)
        self.assertEqual(len(data['items']), 1)
        self.assertEqual(data['items'][0]['menu_name'], 'Chicken Adobo')
        self.assertEqual(data['items'][0]['subtotal'], '250.00')
        self.assertEqual(AuditLog.objects.count(), 1)

    def test_client_total_is_ignored(self):
        """A total sent by the client never reaches the order"""
        data = self.create_order(total_amount='999.00')

        self.assertEqual(data['total_amount'], '250.00')
        self.assertEqual(Order.objects.get().total_amount, Decimal('250.00'))

    def test_order_source_any_case(self):
        data = self.create_order(order_source='counter')

        self.assertEqual(data['order_source'], 'COUNTER')

    def test_create_order_validation(self):
        """Test validation errors come back as 422 with field errors"""
        cases = [
            ({'items': []}, 'items'),
            ({'items': None}, 'items'),
            ({'customer_id': 9999}, 'customer_id'),
            ({'order_type': 'delivery'}, 'order_type'),
            ({'order_source': 'APP'}, 'order_source'),
        ]
        for overrides, field in cases:
            payload = self.order_payload(**overrides)
            if payload['items'] is None:
                del payload['items']
            response = self.client.post(reverse('order_list'), payload, format='json')

            self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY, overrides)
            self.assertIn(field, response.data['errors'])
            self.assertIn('message', response.data)

        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_invalid_items(self):
        for line in [
            {'menu_id': 9999, 'quantity': 1},
            {'menu_id': self.adobo.id, 'quantity': 0},
            {'menu_id': self.sold_out.id, 'quantity': 1},
        ]:
            response = self.client.post(reverse('order_list'), self.order_payload(items=[line]), format='json')
            self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY, line)

        self.assertEqual(Order.objects.count(), 0)

    def test_requires_authentication(self):
        self.client.credentials()

        response = self.client.get(reverse('order_list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_orders(self):
        """Test the paginated envelope and filters"""
        self.create_order()
        self.create_order(order_source='COUNTER')

        response = self.client.get(reverse('order_list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['current_page'], 1)
        self.assertEqual(response.data['last_page'], 1)
        self.assertEqual(len(response.data['data']), 2)

        response = self.client.get(reverse('order_list'), {'order_source': 'counter'})
        self.assertEqual(response.data['total'], 1)

        response = self.client.get(reverse('order_list'), {'search': 'juan'})
        self.assertEqual(response.data['total'], 2)

    def test_search_alias(self):
        """Test the cashier panel's q parameter searches like search"""
        other = Customer.objects.create(customer_name='Rosa', table_number='9', order_reference='QR-9-1')
        self.create_order()
        rosa_order = self.create_order(customer_id=other.id)

        response = self.client.get(reverse('order_list'), {'q': 'rosa'})
        self.assertEqual([order['id'] for order in response.data['data']], [rosa_order['id']])

        response = self.client.get(reverse('order_list'), {'q': 'QR-9'})
        self.assertEqual(response.data['total'], 1)

    def test_page_past_the_end(self):
        self.create_order()

        response = self.client.get(reverse('order_list'), {'page': 3})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], [])
        self.assertEqual(response.data['last_page'], 1)

    def test_advance_endpoint(self):
        """Test advancing an order one step at a time"""
        order = self.create_order()
        url = reverse('order_advance', kwargs={'order_id': order['id']})

        response = self.client.post(url)
        self.assertEqual(response.data['status'], 'preparing')

        response = self.client.post(url)
        self.assertEqual(response.data['status'], 'ready')

        response = self.client.post(url)
        self.assertEqual(response.data['status'], 'served')
        self.assertEqual(response.data['next_status'], 'served')

        entries = AuditLog.objects.count()
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'served')
        self.assertEqual(AuditLog.objects.count(), entries)

    def test_skipping_a_status_is_rejected(self):
        """Test pending cannot jump to ready"""
        order = self.create_order()
        url = reverse('order_detail', kwargs={'order_id': order['id']})

        response = self.client.patch(url, {'status': 'ready'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('status', response.data['errors'])
        self.assertEqual(Order.objects.get().status, 'pending')
        self.assertEqual(AuditLog.objects.count(), 1)

    def test_moving_backwards_is_rejected(self):
        order = self.create_order(status='ready')
        url = reverse('order_detail', kwargs={'order_id': order['id']})

        response = self.client.put(url, {'status': 'preparing'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_update_order(self):
        """Test updating order fields records the diff"""
        order = self.create_order()
        url = reverse('order_detail', kwargs={'order_id': order['id']})

        response = self.client.patch(url, {'status': 'preparing', 'order_type': 'take-out'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'preparing')
        self.assertEqual(response.data['order_type'], 'take-out')
        self.assertEqual(response.data['total_amount'], '250.00')
        self.assertEqual(AuditLog.objects.first().action,
                         f"Updated Order #{order['id']}: order_type=take-out, status=preparing")

    def test_update_cannot_replace_items(self):
        order = self.create_order()
        url = reverse('order_detail', kwargs={'order_id': order['id']})

        response = self.client.patch(url, {'items': [{'menu_id': self.halo.id, 'quantity': 1}]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('items', response.data['errors'])

    def test_delete_order(self):
        order = self.create_order()

        response = self.client.delete(reverse('order_detail', kwargs={'order_id': order['id']}))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())

        response = self.client.get(reverse('order_detail', kwargs={'order_id': order['id']}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_amount_paid_and_balance(self):
        """Only completed payments count towards the amount paid"""
        order = self.create_order()
        order_obj = Order.objects.get(pk=order['id'])
        Payment.objects.create(order=order_obj, amount_paid=Decimal('100.00'),
                               payment_method='cash', payment_status='completed')
        Payment.objects.create(order=order_obj, amount_paid=Decimal('150.00'),
                               payment_method='card', payment_status='failed')

        response = self.client.get(reverse('order_detail', kwargs={'order_id': order['id']}))

        self.assertEqual(response.data['amount_paid'], '100.00')
        self.assertEqual(response.data['balance_due'], '150.00')
        self.assertEqual(len(response.data['payments']), 2)


class OrderItemAPITests(APITestCase):
    """Test changing the lines of an existing order"""

    def setUp(self):
        self.cashier = User.objects.create_user(username='cashier', password='password', role=Role.CASHIER)
        self.client.force_authenticate(user=self.cashier)

        self.customer = Customer.objects.create(table_number='2', order_reference='C-2-1')
        self.adobo = Menu.objects.create(name='Chicken Adobo', price=Decimal('125.00'), category='Mains')
        self.tea = Menu.objects.create(name='Iced Tea', price=Decimal('40.00'), category='Drinks')
        self.order = services.create_order(self.cashier, customer=self.customer, order_type='dine-in',
                                           order_source='COUNTER', items=[{'menu': self.adobo, 'quantity': 2}])
        self.item = self.order.items.get()

    def test_add_item_recomputes_total(self):
        data = {'order_id': self.order.id, 'menu_id': self.tea.id, 'quantity': 2}

        response = self.client.post(reverse('order_item_list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['price'], '40.00')
        self.order.refresh_from_db()
        self.assertEqual(self.order.total_amount, Decimal('330.00'))
        self.assertTrue(AuditLog.objects.filter(action__startswith='Added item').exists())

    def test_update_item_recomputes_total(self):
        url = reverse('order_item_detail', kwargs={'item_id': self.item.id})

        response = self.client.patch(url, {'quantity': 3}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal'], '375.00')
        self.order.refresh_from_db()
        self.assertEqual(self.order.total_amount, Decimal('375.00'))

    def test_change_menu_takes_new_price(self):
        """Moving a line to another dish charges that dish's price"""
        url = reverse('order_item_detail', kwargs={'item_id': self.item.id})

        response = self.client.patch(url, {'menu_id': self.tea.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['menu_name'], 'Iced Tea')
        self.assertEqual(response.data['price'], '40.00')
        self.order.refresh_from_db()
        self.assertEqual(self.order.total_amount, Decimal('80.00'))
        self.assertIn('menu=', AuditLog.objects.first().action)
        self.assertIn('price=40.00', AuditLog.objects.first().action)

    def test_change_menu_keeps_explicit_price(self):
        url = reverse('order_item_detail', kwargs={'item_id': self.item.id})

        response = self.client.patch(url, {'menu_id': self.tea.id, 'price': '35.00'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['price'], '35.00')

    def test_change_menu_to_unavailable_dish(self):
        lechon = Menu.objects.create(name='Lechon', price=Decimal('300.00'), category='Mains',
                                     availability_status=False)
        url = reverse('order_item_detail', kwargs={'item_id': self.item.id})
        entries = AuditLog.objects.count()

        response = self.client.patch(url, {'menu_id': lechon.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['errors']['menu_id'], ['Lechon is not available.'])
        self.item.refresh_from_db()
        self.assertEqual(self.item.menu, self.adobo)
        self.assertEqual(self.item.price, Decimal('125.00'))
        self.assertEqual(AuditLog.objects.count(), entries)

    def test_remove_item_recomputes_total(self):
        OrderItem.objects.create(order=self.order, menu=self.tea, quantity=1, price=Decimal('40.00'))
        services.update_order_total(self.order)

        response = self.client.delete(reverse('order_item_detail', kwargs={'item_id': self.item.id}))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.order.refresh_from_db()
        self.assertEqual(self.order.total_amount, Decimal('40.00'))

    def test_cannot_remove_last_item(self):
        response = self.client.delete(reverse('order_item_detail', kwargs={'item_id': self.item.id}))

        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertTrue(OrderItem.objects.filter(pk=self.item.pk).exists())

    def test_list_items_for_order(self):
        response = self.client.get(reverse('order_item_list'), {'order_id': self.order.id})

        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['menu_name'], 'Chicken Adobo')


class OrderLifecycleTests(APITestCase):
    """Test a QR order from registration to payment"""

    def setUp(self):
        self.admin = User.objects.create_user(username='admin', password='password', name='Admin', role=Role.ADMIN)
        self.cashier = User.objects.create_user(username='cashier', password='password',
                                                name='Front Cashier', role=Role.CASHIER)
        self.adobo = Menu.objects.create(name='Chicken Adobo', price=Decimal('125.00'), category='Mains')

    def test_full_lifecycle(self):
        # Guest registers at the table without logging in
        response = self.client.post(reverse('customer_list'),
                                    {'table_number': '5', 'order_reference': 'QR-5-1700000000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        customer_id = response.data['id']
        self.assertEqual(response.data['display_name'], 'Guest')

        # Cashier takes the order
        _, token = AccessToken.objects.issue(self.cashier)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = self.client.post(reverse('order_list'), {
            'customer_id': customer_id,
            'handled_by': self.cashier.id,
            'order_type': 'dine-in',
            'order_source': 'QR',
            'items': [{'menu_id': self.adobo.id, 'quantity': 2, 'price': '125.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], '250.00')
        order_id = response.data['id']

        # Kitchen moves it along twice
        advance_url = reverse('order_advance', kwargs={'order_id': order_id})
        self.client.post(advance_url)
        response = self.client.post(advance_url)
        self.assertEqual(response.data['status'], 'ready')

        # Paid in full with cash
        response = self.client.post(reverse('payment_list'), {
            'order_id': order_id,
            'amount_paid': '250.00',
            'payment_method': 'cash',
            'payment_status': 'completed',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(reverse('order_detail', kwargs={'order_id': order_id}))
        self.assertEqual(response.data['balance_due'], '0.00')

        # Cashier cannot read the audit trail, the admin can
        response = self.client.get(reverse('audit_log_list'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        _, token = AccessToken.objects.issue(self.admin)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = self.client.get(reverse('audit_log_list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertGreaterEqual(response.data['total'], 4)

        actions = [entry['action'] for entry in response.data['data']]
        self.assertTrue(actions[0].startswith('Created Payment'))
        self.assertTrue(actions[-1].startswith('Created Customer'))
        self.assertEqual(response.data['data'][-1]['user_name'], 'System')
        self.assertEqual(response.data['data'][0]['user_name'], 'Front Cashier')
        self.assertEqual(response.data['data'][0]['user_role'], 'Cashier')

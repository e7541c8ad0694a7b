from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role, User
from audit.models import AuditLog
from customers.models import Customer
from menu.models import Menu
from orders import services as order_services

from .models import Payment


class PaymentAPITests(APITestCase):
    """Test recording and correcting payments"""

    def setUp(self):
        self.cashier = User.objects.create_user(username='cashier', password='password',
                                                name='Front Cashier', role=Role.CASHIER)
        self.client.force_authenticate(user=self.cashier)

        customer = Customer.objects.create(table_number='5', order_reference='QR-5-1')
        adobo = Menu.objects.create(name='Chicken Adobo', price=Decimal('125.00'), category='Mains')
        self.order = order_services.create_order(None, customer=customer, order_type='dine-in',
                                                 order_source='QR', items=[{'menu': adobo, 'quantity': 2}])
        AuditLog.objects.all().delete()

    def payment_payload(self, **overrides):
        data = {
            'order_id': self.order.id,
            'amount_paid': '250.00',
            'payment_method': 'cash',
            'payment_status': 'completed',
        }
        data.update(overrides)
        return data

    def test_create_payment(self):
        """Test the payment timestamp defaults to now"""
        before = timezone.now()

        response = self.client.post(reverse('payment_list'), self.payment_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order_id'], self.order.id)
        self.assertEqual(response.data['amount_paid'], '250.00')

        payment = Payment.objects.get()
        self.assertGreaterEqual(payment.payment_timestamp, before)

        log = AuditLog.objects.get()
        self.assertEqual(log.user, self.cashier)
        self.assertEqual(log.action, f'Created Payment #{payment.id} for Order #{self.order.id} '
                                     f'(250.00 cash, completed)')

    def test_create_payment_with_timestamp(self):
        paid_at = timezone.now() - timedelta(hours=2)

        response = self.client.post(reverse('payment_list'),
                                    self.payment_payload(payment_timestamp=paid_at.isoformat()), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Payment.objects.get().payment_timestamp, paid_at)

    def test_split_payments(self):
        """Test an order can be settled over several payments"""
        self.client.post(reverse('payment_list'), self.payment_payload(amount_paid='100.00'), format='json')
        self.client.post(reverse('payment_list'),
                         self.payment_payload(amount_paid='150.00', payment_method='gcash'), format='json')

        response = self.client.get(reverse('order_detail', kwargs={'order_id': self.order.id}))

        self.assertEqual(response.data['amount_paid'], '250.00')
        self.assertEqual(response.data['balance_due'], '0.00')

    def test_payment_validation(self):
        """Test invalid payments are refused with field errors"""
        cases = [
            ({'order_id': 9999}, 'order_id', 'The order does not exist.'),
            ({'payment_method': 'bitcoin'}, 'payment_method', 'Payment method must be cash, gcash, or card.'),
            ({'payment_status': 'refunded'}, 'payment_status', 'Payment status must be pending, completed, or failed.'),
            ({'amount_paid': '-5.00'}, 'amount_paid', 'Amount paid cannot be negative.'),
        ]
        for overrides, field, message in cases:
            response = self.client.post(reverse('payment_list'), self.payment_payload(**overrides), format='json')

            self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY, overrides)
            self.assertEqual(response.data['errors'][field], [message])

        self.assertEqual(Payment.objects.count(), 0)
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_update_payment(self):
        payment = Payment.objects.create(order=self.order, amount_paid=Decimal('250.00'),
                                         payment_method='card', payment_status='pending')
        url = reverse('payment_detail', kwargs={'payment_id': payment.id})

        response = self.client.patch(url, {'payment_status': 'completed', 'payment_timestamp': None}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment_status'], 'completed')
        self.assertIsNotNone(response.data['payment_timestamp'])
        self.assertEqual(AuditLog.objects.get().action, f'Updated Payment #{payment.id}: payment_status=completed')

    def test_payments_cannot_be_deleted(self):
        payment = Payment.objects.create(order=self.order, amount_paid=Decimal('250.00'),
                                         payment_method='cash', payment_status='completed')

        response = self.client.delete(reverse('payment_detail', kwargs={'payment_id': payment.id}))

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
        self.assertTrue(Payment.objects.filter(pk=payment.pk).exists())

    def test_list_payments(self):
        Payment.objects.create(order=self.order, amount_paid=Decimal('100.00'),
                               payment_method='cash', payment_status='completed')
        Payment.objects.create(order=self.order, amount_paid=Decimal('150.00'),
                               payment_method='card', payment_status='failed')

        response = self.client.get(reverse('payment_list'), {'order_id': self.order.id})
        self.assertEqual(response.data['total'], 2)

        response = self.client.get(reverse('payment_list'), {'payment_status': 'failed'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['data'][0]['payment_method'], 'card')

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)

        response = self.client.post(reverse('payment_list'), self.payment_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(Payment.objects.count(), 0)

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from customers.models import Customer
from menu.models import Menu


class OrderStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PREPARING = 'preparing', 'Preparing'
    READY = 'ready', 'Ready'
    SERVED = 'served', 'Served'


# The only order a ticket moves through, one step at a time
STATUS_FLOW = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
)


def next_status(current):
    """The status after ``current``; ``served`` stays ``served``."""
    index = STATUS_FLOW.index(current)
    return STATUS_FLOW[min(index + 1, len(STATUS_FLOW) - 1)]


def is_legal_transition(current, new):
    return new == current or new == next_status(current)


class OrderType(models.TextChoices):
    DINE_IN = 'dine-in', 'Dine-in'
    TAKE_OUT = 'take-out', 'Take-out'


class OrderSource(models.TextChoices):
    QR = 'QR', 'QR'
    COUNTER = 'COUNTER', 'Counter'


class Order(models.Model):
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='orders')
    handled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='handled_orders',
    )
    order_type = models.CharField(max_length=10, choices=OrderType.choices, db_index=True)
    status = models.CharField(max_length=10, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)
    total_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(0)]
    )
    order_timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    expiry_timestamp = models.DateTimeField(null=True, blank=True)
    order_source = models.CharField(max_length=10, choices=OrderSource.choices, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-order_timestamp', '-id']

    def __str__(self):
        return f"Order {self.id} ({self.status})"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    menu = models.ForeignKey(Menu, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    # Menu price at the time of ordering
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity} x {self.menu.name} for Order {self.order_id}"

    @property
    def subtotal(self):
        return self.quantity * self.price

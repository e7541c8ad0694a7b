from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from orders.models import Order


class PaymentMethod(models.TextChoices):
    CASH = 'cash', 'Cash'
    GCASH = 'gcash', 'GCash'
    CARD = 'card', 'Card'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'


class Payment(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='payments')
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices)
    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, db_index=True)
    payment_timestamp = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-payment_timestamp', '-id']

    def __str__(self):
        return f"Payment {self.id} for Order {self.order_id} - {self.payment_status}"

from decimal import Decimal

from rest_framework import serializers

from orders.models import Order

from .models import Payment, PaymentMethod, PaymentStatus


class PaymentSerializer(serializers.ModelSerializer):
    order_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payment
        fields = ['id', 'order_id', 'amount_paid', 'payment_method', 'payment_status',
                  'payment_timestamp', 'created_at', 'updated_at']
        read_only_fields = fields


class PaymentWriteSerializer(serializers.Serializer):
    """Validates payment creation, and partial updates when ``partial=True``"""

    order_id = serializers.PrimaryKeyRelatedField(
        queryset=Order.objects.all(),
        source='order',
        error_messages={'does_not_exist': 'The order does not exist.'},
    )
    amount_paid = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0'),
        error_messages={'min_value': 'Amount paid cannot be negative.'},
    )
    payment_method = serializers.ChoiceField(
        choices=PaymentMethod.choices,
        error_messages={'invalid_choice': 'Payment method must be cash, gcash, or card.'},
    )
    payment_status = serializers.ChoiceField(
        choices=PaymentStatus.choices,
        error_messages={'invalid_choice': 'Payment status must be pending, completed, or failed.'},
    )
    payment_timestamp = serializers.DateTimeField(
        required=False,
        allow_null=True,
        help_text="When the money changed hands (default: now)",
    )

from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import serializers

from customers.models import Customer
from customers.serializers import CustomerSerializer
from menu.models import Menu
from payment.models import PaymentStatus
from payment.serializers import PaymentSerializer

from .models import Order, OrderItem, OrderSource, OrderStatus, OrderType, next_status

User = get_user_model()


class UpperChoiceField(serializers.ChoiceField):
    """ChoiceField that accepts any letter case, e.g. 'qr' or 'Counter'."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip().upper()
        return super().to_internal_value(data)


class OrderItemSerializer(serializers.ModelSerializer):
    order_id = serializers.IntegerField(read_only=True)
    menu_id = serializers.IntegerField(read_only=True)
    menu_name = serializers.CharField(source='menu.name', read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'order_id', 'menu_id', 'menu_name', 'quantity', 'price', 'subtotal',
                  'created_at', 'updated_at']
        read_only_fields = fields
        extra_kwargs = {
            'price': {'help_text': 'Unit price captured when the item was ordered'},
            'subtotal': {'help_text': 'quantity x price'},
        }


class OrderLineSerializer(serializers.Serializer):
    """One line of a new order"""

    menu_id = serializers.PrimaryKeyRelatedField(
        queryset=Menu.objects.all(),
        source='menu',
        error_messages={'does_not_exist': 'The menu item does not exist.'},
    )
    quantity = serializers.IntegerField(
        min_value=1,
        error_messages={'min_value': 'Quantity must be at least 1.'},
    )
    price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        help_text="Unit price; defaults to the current menu price",
        error_messages={'min_value': 'Price cannot be negative.'},
    )

    def validate_menu_id(self, menu):
        if not menu.availability_status:
            raise serializers.ValidationError(f"{menu.name} is not available.")
        return menu


class OrderWriteSerializer(serializers.Serializer):
    """
    Validates order creation, and partial updates when ``partial=True``.

    ``total_amount`` is not accepted: it is always derived from the items.
    ``items`` only applies on creation; use the order item endpoints after.
    """

    customer_id = serializers.PrimaryKeyRelatedField(
        queryset=Customer.objects.all(),
        source='customer',
        error_messages={'does_not_exist': 'Selected customer does not exist.'},
    )
    handled_by = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Assigned user does not exist.'},
    )
    order_type = serializers.ChoiceField(
        choices=OrderType.choices,
        error_messages={'invalid_choice': 'Order type must be either dine-in or take-out.'},
    )
    status = serializers.ChoiceField(
        choices=OrderStatus.choices,
        required=False,
        error_messages={'invalid_choice': 'Status must be pending, preparing, ready, or served.'},
    )
    order_source = UpperChoiceField(
        choices=OrderSource.choices,
        error_messages={'invalid_choice': 'Order source must be either QR or COUNTER.'},
    )
    order_timestamp = serializers.DateTimeField(required=False, allow_null=True)
    expiry_timestamp = serializers.DateTimeField(required=False, allow_null=True)
    items = OrderLineSerializer(many=True, allow_empty=False, required=False)

    def validate(self, attrs):
        if self.partial:
            if 'items' in attrs:
                raise serializers.ValidationError({'items': ['Items are changed through the order item endpoints.']})
            if 'order_timestamp' in attrs:
                raise serializers.ValidationError({'order_timestamp': ['The order timestamp cannot be changed.']})
        elif not attrs.get('items'):
            raise serializers.ValidationError({'items': ['An order needs at least one item.']})
        return attrs


class OrderSerializer(serializers.ModelSerializer):
    customer_id = serializers.IntegerField(read_only=True)
    customer = CustomerSerializer(read_only=True)
    handled_by = serializers.IntegerField(source='handled_by_id', read_only=True, allow_null=True)
    handled_by_name = serializers.SerializerMethodField()
    next_status = serializers.SerializerMethodField()
    amount_paid = serializers.SerializerMethodField()
    balance_due = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'customer_id', 'customer', 'handled_by', 'handled_by_name', 'order_type',
                  'status', 'next_status', 'total_amount', 'amount_paid', 'balance_due',
                  'order_timestamp', 'expiry_timestamp', 'order_source', 'items', 'payments',
                  'created_at', 'updated_at']
        read_only_fields = fields
        extra_kwargs = {
            'total_amount': {'help_text': 'Sum of item subtotals, computed by the server'},
        }

    def get_handled_by_name(self, order):
        if order.handled_by is None:
            return None
        return order.handled_by.name or order.handled_by.username

    def get_next_status(self, order):
        return next_status(order.status)

    def _amount_paid(self, order):
        return sum(
            (p.amount_paid for p in order.payments.all() if p.payment_status == PaymentStatus.COMPLETED),
            Decimal('0.00'),
        )

    def get_amount_paid(self, order):
        return f"{self._amount_paid(order):.2f}"

    def get_balance_due(self, order):
        return f"{max(order.total_amount - self._amount_paid(order), Decimal('0')):.2f}"


class OrderItemCreateSerializer(OrderLineSerializer):
    order_id = serializers.PrimaryKeyRelatedField(
        queryset=Order.objects.all(),
        source='order',
        error_messages={'does_not_exist': 'The order does not exist.'},
    )


class OrderItemUpdateSerializer(serializers.Serializer):
    menu_id = serializers.PrimaryKeyRelatedField(
        queryset=Menu.objects.all(),
        source='menu',
        required=False,
        error_messages={'does_not_exist': 'The menu item does not exist.'},
    )
    quantity = serializers.IntegerField(
        min_value=1,
        required=False,
        error_messages={'min_value': 'Quantity must be at least 1.'},
    )
    price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        help_text="Unit price; defaults to the new menu price when menu_id changes",
        error_messages={'min_value': 'Price cannot be negative.'},
    )

    validate_menu_id = OrderLineSerializer.validate_menu_id

from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from epos.fields import CleanCharField

from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = ['id', 'customer_name', 'display_name', 'table_number', 'order_reference',
                  'created_at', 'updated_at']
        read_only_fields = fields


class CustomerWriteSerializer(serializers.ModelSerializer):
    customer_name = CleanCharField(
        max_length=100,
        required=False,
        allow_blank=True,
        allow_null=True,
        error_messages={'max_length': 'Customer name cannot exceed 100 characters.'},
    )
    table_number = CleanCharField(
        max_length=20,
        error_messages={
            'required': 'Table number is required (comes from QR).',
            'max_length': 'Table number cannot exceed 20 characters.',
        },
    )
    order_reference = CleanCharField(
        max_length=50,
        validators=[UniqueValidator(queryset=Customer.objects.all(), message='This order reference is already used.')],
        error_messages={'required': 'Order reference is required.'},
    )

    class Meta:
        model = Customer
        fields = ['customer_name', 'table_number', 'order_reference']
        extra_kwargs = {
            'order_reference': {'help_text': 'Session code shared with the guest, e.g. QR-5-1700000000'},
        }

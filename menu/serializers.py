from decimal import Decimal

from rest_framework import serializers

from epos.fields import CleanCharField

from .models import Menu


class MenuSerializer(serializers.ModelSerializer):
    class Meta:
        model = Menu
        fields = ['id', 'name', 'description', 'price', 'category', 'availability_status',
                  'product_details', 'created_at', 'updated_at']
        read_only_fields = fields


class MenuWriteSerializer(serializers.ModelSerializer):
    """Text fields are stripped of tags and trimmed before they are validated."""

    name = CleanCharField(max_length=100, error_messages={'required': 'Menu item name is required.'})
    description = CleanCharField(required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal('0'),
        error_messages={'min_value': 'Price must be zero or greater.'},
    )
    category = CleanCharField(max_length=50)
    availability_status = serializers.BooleanField(
        error_messages={'required': 'Availability status is required.'}
    )
    product_details = CleanCharField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = Menu
        fields = ['name', 'description', 'price', 'category', 'availability_status', 'product_details']
        extra_kwargs = {
            'price': {'help_text': 'Unit price, e.g. 125.00'},
        }

from django.contrib import admin

from epos.admin import ReadOnlyAdminMixin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'order', 'amount_paid', 'payment_method', 'payment_status', 'payment_timestamp']
    list_filter = ['payment_status', 'payment_method', 'payment_timestamp']
    search_fields = ['order__customer__order_reference']

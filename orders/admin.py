from django.contrib import admin

from epos.admin import ReadOnlyAdminMixin
from .models import Order, OrderItem


class OrderItemInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = OrderItem
    extra = 0


@admin.register(Order)
class OrderAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'customer', 'handled_by', 'order_type', 'order_source', 'status', 'total_amount', 'order_timestamp']
    list_filter = ['status', 'order_source', 'order_type', 'order_timestamp']
    search_fields = ['customer__order_reference', 'customer__customer_name']
    inlines = [OrderItemInline]


@admin.register(OrderItem)
class OrderItemAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['order', 'menu', 'quantity', 'price']
    list_filter = ['order__status', 'menu']
    search_fields = ['order__customer__order_reference', 'menu__name']

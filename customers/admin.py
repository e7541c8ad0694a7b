from django.contrib import admin

from epos.admin import ReadOnlyAdminMixin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'order_reference', 'customer_name', 'table_number', 'created_at']
    search_fields = ['order_reference', 'customer_name', 'table_number']

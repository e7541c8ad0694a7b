from django.contrib import admin

from epos.admin import ReadOnlyAdminMixin
from .models import Menu


@admin.register(Menu)
class MenuAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'name', 'category', 'price', 'availability_status']
    search_fields = ['name', 'category']
    list_filter = ['category', 'availability_status']

from django.contrib import admin

from epos.admin import ReadOnlyAdminMixin
from .models import AccessToken, User


@admin.register(User)
class UserAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'username', 'name', 'role', 'contact_number', 'is_active', 'created_at']
    list_filter = ['role', 'is_active']
    search_fields = ['username', 'name']
    exclude = ['password']


@admin.register(AccessToken)
class AccessTokenAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'user', 'name', 'created_at', 'last_used_at']
    search_fields = ['user__username']
    exclude = ['key_digest']

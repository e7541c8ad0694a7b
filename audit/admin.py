from django.contrib import admin

from epos.admin import ReadOnlyAdminMixin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['id', 'timestamp', 'user', 'action']
    list_filter = ['timestamp']
    search_fields = ['action', 'user__username', 'user__name']

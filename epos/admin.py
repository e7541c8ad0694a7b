class ReadOnlyAdminMixin:
    """
    Admin pages for browsing only. Records change through the API services,
    which write the matching audit entries.
    """

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

from rest_framework.permissions import BasePermission

from accounts.models import Role


ADMIN_ONLY = frozenset({Role.ADMIN})
STAFF = frozenset({Role.ADMIN, Role.CASHIER})
PUBLIC = None


def authorize(principal_role, required_roles):
    """Return True when ``principal_role`` is one of ``required_roles``."""
    if required_roles is None:
        return True
    return principal_role in required_roles


class RolePermission(BasePermission):
    """
    Gate a view on the role of the authenticated user.

    Views declare ``required_roles`` either as a single role set or as a
    mapping of HTTP method to role set. ``None`` marks the route public.
    Views that declare nothing default to staff only.
    """

    message = 'Forbidden: insufficient role'

    def get_required_roles(self, request, view):
        required = getattr(view, 'required_roles', STAFF)
        if isinstance(required, dict):
            method = 'GET' if request.method in ('HEAD', 'OPTIONS') else request.method
            return required.get(method, ADMIN_ONLY)
        return required

    def has_permission(self, request, view):
        required = self.get_required_roles(request, view)
        if required is PUBLIC:
            return True

        user = request.user
        if not user or not user.is_authenticated:
            # DRF turns this into 401 because an authenticator is configured
            return False

        return authorize(user.role, required)


def actor_of(request):
    """The authenticated user behind ``request``, or None for the system actor."""
    user = request.user
    return user if user and user.is_authenticated else None

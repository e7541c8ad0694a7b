import logging

from django.db import transaction
from django.db.models import ProtectedError

from audit.recorder import changed_fields, describe_changes, record
from epos.exceptions import Conflict

from .models import Menu

logger = logging.getLogger(__name__)


@transaction.atomic
def create_menu(actor, data):
    menu = Menu.objects.create(**data)
    record(actor, f"Created Menu #{menu.pk} ({menu.name})")
    return menu


@transaction.atomic
def update_menu(actor, menu, data):
    changes = changed_fields(menu, data)
    if not changes:
        return menu

    for field, value in changes.items():
        setattr(menu, field, value)
    menu.save()
    record(actor, f"Updated Menu #{menu.pk} ({menu.name}): {describe_changes(changes)}")
    return menu


@transaction.atomic
def delete_menu(actor, menu):
    """
    Delete a menu item that no order item refers to.

    Items already ordered keep their menu row; such deletes raise Conflict
    and write nothing. Mark the item unavailable instead.
    """
    menu_id, name = menu.pk, menu.name
    try:
        menu.delete()
    except ProtectedError:
        logger.warning("Refused to delete Menu #%s: referenced by order items", menu_id)
        raise Conflict('This menu item appears on existing orders; mark it unavailable instead.')
    record(actor, f"Deleted Menu #{menu_id} ({name})")

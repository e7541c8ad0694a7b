import logging

from django.db import transaction
from django.db.models import ProtectedError

from audit.recorder import changed_fields, describe_changes, record
from epos.exceptions import Conflict

from .models import Customer

logger = logging.getLogger(__name__)


@transaction.atomic
def create_customer(actor, data):
    customer = Customer.objects.create(**data)
    record(actor, f"Created Customer #{customer.pk} ({customer.order_reference})")
    return customer


@transaction.atomic
def update_customer(actor, customer, data):
    changes = changed_fields(customer, data)
    if not changes:
        return customer

    for field, value in changes.items():
        setattr(customer, field, value)
    customer.save()
    record(actor, f"Updated Customer #{customer.pk}: {describe_changes(changes)}")
    return customer


@transaction.atomic
def delete_customer(actor, customer):
    """Delete a customer without orders; raises Conflict otherwise."""
    customer_id, reference = customer.pk, customer.order_reference
    try:
        customer.delete()
    except ProtectedError:
        logger.warning("Refused to delete Customer #%s: has orders", customer_id)
        raise Conflict('This customer has orders and cannot be deleted.')
    record(actor, f"Deleted Customer #{customer_id} ({reference})")

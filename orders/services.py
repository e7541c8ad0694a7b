import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from audit.recorder import changed_fields, describe_changes, record
from epos.exceptions import Conflict

from .models import Order, OrderItem, OrderStatus, is_legal_transition, next_status

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def calculate_total(items):
    """Sum of quantity x price over ``items``, rounded to cents"""
    total = sum((item.quantity * item.price for item in items), Decimal('0'))
    return total.quantize(CENT)


def update_order_total(order):
    """Recompute and store the order total from its items"""
    order.total_amount = calculate_total(order.items.all())
    order.save(update_fields=['total_amount', 'updated_at'])
    return order.total_amount


def _build_item(order, line):
    menu = line['menu']
    price = line.get('price')
    return OrderItem(
        order=order,
        menu=menu,
        quantity=line['quantity'],
        # Snapshot the menu price unless the POS sent one
        price=menu.price if price is None else price,
    )


@transaction.atomic
def create_order(actor, customer, order_type, order_source, items, handled_by=None,
                 status=OrderStatus.PENDING, order_timestamp=None, expiry_timestamp=None):
    """
    Create an order with its line items.

    Args:
        actor: User placing the order (None for the system actor)
        customer: Customer the order belongs to
        order_type: 'dine-in' or 'take-out'
        order_source: 'QR' or 'COUNTER'
        items: Non-empty list of dicts with 'menu', 'quantity' and optional 'price'
        handled_by: Staff member handling the order (default: the actor)

    Returns:
        The saved Order, whose total_amount is the sum of its item subtotals
    """
    if not items:
        raise ValidationError({'items': ['An order needs at least one item.']})

    order = Order.objects.create(
        customer=customer,
        handled_by=handled_by if handled_by is not None else actor,
        order_type=order_type,
        status=status,
        order_source=order_source.upper(),
        order_timestamp=order_timestamp or timezone.now(),
        expiry_timestamp=expiry_timestamp,
    )
    OrderItem.objects.bulk_create([_build_item(order, line) for line in items])
    update_order_total(order)

    record(actor, f"Created Order #{order.pk} for Customer #{customer.pk} "
                  f"({len(items)} items, total {order.total_amount:.2f})")
    logger.info("Order %s created from %s, total %s", order.pk, order.order_source, order.total_amount)
    return order


@transaction.atomic
def update_order(actor, order, data):
    """
    Apply a partial update to ``order``.

    A status change may only stay put or move one step along STATUS_FLOW.
    The write only lands if the row still has the status and updated_at that
    were read, otherwise Conflict is raised and nothing is written.
    """
    changes = changed_fields(order, data)
    if not changes:
        return order

    if 'status' in changes and not is_legal_transition(order.status, changes['status']):
        logger.warning("Rejected transition of Order #%s from %s to %s", order.pk, order.status, changes['status'])
        raise ValidationError({
            'status': [f"Cannot move an order from {order.status} to {changes['status']}; "
                       f"the next status is {next_status(order.status)}."]
        })
    if 'order_source' in changes:
        changes['order_source'] = changes['order_source'].upper()

    updated = Order.objects.filter(
        pk=order.pk,
        status=order.status,
        updated_at=order.updated_at,
    ).update(updated_at=timezone.now(), **changes)

    if not updated:
        logger.warning("Lost update on Order #%s", order.pk)
        raise Conflict('The order was changed by someone else; reload it and try again.')

    order.refresh_from_db()
    record(actor, f"Updated Order #{order.pk}: {describe_changes(changes)}")
    return order


def advance_order(actor, order):
    """Move the order one step along STATUS_FLOW; a served order is left alone."""
    new_status = next_status(order.status)
    if new_status == order.status:
        return order
    return update_order(actor, order, {'status': new_status})


@transaction.atomic
def delete_order(actor, order):
    """Delete an order; its items and payments go with it"""
    order_id = order.pk
    order.delete()
    record(actor, f"Deleted Order #{order_id}")
    logger.info("Order %s deleted", order_id)


@transaction.atomic
def add_item(actor, order, menu, quantity, price=None):
    item = _build_item(order, {'menu': menu, 'quantity': quantity, 'price': price})
    item.save()
    update_order_total(order)
    record(actor, f"Added item #{item.pk} ({quantity} x {menu.name}) to Order #{order.pk}")
    return item


@transaction.atomic
def update_item(actor, item, data):
    changes = changed_fields(item, data)
    if not changes:
        return item

    if 'menu' in changes and data.get('price') is None:
        # A new dish is charged at its own price unless the POS sent one
        data = {**data, 'price': changes['menu'].price}
        changes = changed_fields(item, data)

    for field, value in changes.items():
        setattr(item, field, value)
    item.save()
    update_order_total(item.order)
    record(actor, f"Updated item #{item.pk} on Order #{item.order_id}: {describe_changes(changes)}")
    return item


@transaction.atomic
def remove_item(actor, item):
    order = item.order
    if order.items.count() == 1:
        raise ValidationError({'order_id': ['An order needs at least one item; delete the order instead.']})

    item_id = item.pk
    item.delete()
    update_order_total(order)
    record(actor, f"Removed item #{item_id} from Order #{order.pk}")

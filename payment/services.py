import logging

from django.db import transaction
from django.utils import timezone

from audit.recorder import changed_fields, describe_changes, record

from .models import Payment

logger = logging.getLogger(__name__)


@transaction.atomic
def create_payment(actor, data):
    data = dict(data)
    if not data.get('payment_timestamp'):
        data['payment_timestamp'] = timezone.now()

    payment = Payment.objects.create(**data)
    record(actor, f"Created Payment #{payment.pk} for Order #{payment.order_id} "
                  f"({payment.amount_paid:.2f} {payment.payment_method}, {payment.payment_status})")
    logger.info("Payment %s recorded for order %s", payment.pk, payment.order_id)
    return payment


@transaction.atomic
def update_payment(actor, payment, data):
    data = dict(data)
    if 'payment_timestamp' in data and data['payment_timestamp'] is None:
        # The column is required; a null means "leave as is"
        del data['payment_timestamp']

    changes = changed_fields(payment, data)
    if not changes:
        return payment

    for field, value in changes.items():
        setattr(payment, field, value)
    payment.save()
    record(actor, f"Updated Payment #{payment.pk}: {describe_changes(changes)}")
    return payment


@transaction.atomic
def delete_payment(actor, payment):
    payment_id, order_id = payment.pk, payment.order_id
    payment.delete()
    record(actor, f"Deleted Payment #{payment_id} for Order #{order_id}")

import logging
from datetime import date, datetime
from decimal import Decimal

from django.db import models
from django.utils import timezone

from .models import AuditLog

logger = logging.getLogger(__name__)

# Fields whose values never end up in an audit description
REDACTED_FIELDS = {'password'}


def record(actor, action, at=None):
    """
    Append an entry to the audit trail.

    Args:
        actor: The user performing the action, or None for the system actor
        action: Human-readable description of what happened
        at: When it happened (default: now)

    Returns:
        The stored AuditLog entry

    Callers run this inside the same transaction as the mutation it
    describes, so a failed write rolls the mutation back as well.
    """
    entry = AuditLog.objects.create(
        user=actor,
        action=action[:255],
        timestamp=at or timezone.now(),
    )
    logger.info("audit #%s by %s: %s", entry.pk, getattr(actor, 'username', 'system'), entry.action)
    return entry


def _format_value(value):
    if isinstance(value, models.Model):
        return str(value.pk)
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None:
        return 'null'
    return str(value)


def describe_changes(changes):
    """Serialize a field -> new value diff as ``a=1, b=x`` sorted by field."""
    parts = []
    for field in sorted(changes):
        if field in REDACTED_FIELDS:
            parts.append(f"{field}=<changed>")
        else:
            parts.append(f"{field}={_format_value(changes[field])}")
    return ', '.join(parts)


def changed_fields(instance, data):
    """Return the subset of ``data`` that differs from ``instance``."""
    changes = {}
    for field, value in data.items():
        if field in REDACTED_FIELDS:
            changes[field] = value
            continue
        current = getattr(instance, field)
        if isinstance(current, models.Model) or isinstance(value, models.Model):
            if getattr(current, 'pk', None) != getattr(value, 'pk', None):
                changes[field] = value
        elif current != value:
            changes[field] = value
    return changes

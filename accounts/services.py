import logging

from django.db import transaction

from audit.recorder import changed_fields, describe_changes, record

from .models import AccessToken, User

logger = logging.getLogger(__name__)


@transaction.atomic
def create_user(actor, data):
    data = dict(data)
    password = data.pop('password')
    user = User(**data)
    user.set_password(password)
    user.save()
    record(actor, f"Created User #{user.pk} ({user.username})")
    logger.info("User %s created with role %s", user.username, user.role)
    return user


@transaction.atomic
def update_user(actor, user, data):
    changes = changed_fields(user, data)
    if not changes:
        return user

    for field, value in changes.items():
        if field == 'password':
            user.set_password(value)
        else:
            setattr(user, field, value)
    user.save()
    record(actor, f"Updated User #{user.pk} ({user.username}): {describe_changes(changes)}")
    return user


@transaction.atomic
def delete_user(actor, user):
    # The actor may be the user being deleted. Tokens cascade, audit rows go NULL.
    record(actor, f"Deleted User #{user.pk} ({user.username})")
    username = user.username
    user.delete()
    logger.info("User %s deleted", username)


@transaction.atomic
def login(user):
    """Issue a bearer token for ``user`` and return its plaintext."""
    _, plaintext = AccessToken.objects.issue(user)
    record(user, "Logged in")
    return plaintext


@transaction.atomic
def logout(user, token):
    record(user, "Logged out")
    if token is not None:
        token.delete()


@transaction.atomic
def logout_all(user):
    record(user, "Logged out from all devices")
    revoked, _ = user.access_tokens.all().delete()
    return revoked

import hashlib
import secrets

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class Role(models.TextChoices):
    ADMIN = 'Admin', 'Admin'
    CASHIER = 'Cashier', 'Cashier'


class StaffManager(UserManager):

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault('role', Role.ADMIN)
        extra_fields.setdefault('name', username)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    name = models.CharField(max_length=100)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.CASHIER)
    contact_number = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StaffManager()

    REQUIRED_FIELDS = []

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def is_admin(self):
        return self.role == Role.ADMIN


def hash_token(secret):
    return hashlib.sha256(secret.encode()).hexdigest()


class AccessTokenManager(models.Manager):

    def issue(self, user, name='api-token'):
        """Create a token for ``user`` and return ``(token, plaintext)``."""
        secret = secrets.token_hex(20)
        token = self.create(user=user, name=name, key_digest=hash_token(secret))
        return token, f"{token.pk}|{secret}"

    def find(self, plaintext):
        """Resolve a ``<id>|<secret>`` plaintext token, or None."""
        token_id, sep, secret = plaintext.partition('|')
        if not sep or not token_id.isdigit() or not secret:
            return None
        token = self.select_related('user').filter(pk=int(token_id)).first()
        if token is None or not secrets.compare_digest(token.key_digest, hash_token(secret)):
            return None
        return token


class AccessToken(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='access_tokens')
    name = models.CharField(max_length=100, default='api-token')
    key_digest = models.CharField(max_length=64, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    last_used_at = models.DateTimeField(null=True, blank=True)

    objects = AccessTokenManager()

    def __str__(self):
        return f"Token {self.id} for {self.user.username}"

from django.conf import settings
from django.db import models
from django.utils import timezone


SYSTEM_ACTOR_NAME = 'System'


class AuditLog(models.Model):
    # NULL user is the system actor; a deleted user's history stays behind
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='audit_logs',
    )
    action = models.CharField(max_length=255, db_index=True)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['-timestamp', '-id']
        indexes = [models.Index(fields=['user', 'timestamp'], name='auditlog_user_ts_idx')]

    def __str__(self):
        return f"[{self.timestamp:%Y-%m-%d %H:%M:%S}] {self.actor_name}: {self.action}"

    @property
    def actor_name(self):
        if not self.user_id:
            return SYSTEM_ACTOR_NAME
        return self.user.name or self.user.username

    @property
    def actor_role(self):
        return self.user.role if self.user_id else None

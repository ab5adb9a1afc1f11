import uuid
from datetime import timedelta

from django.db import models
from django.conf import settings
from django.utils import timezone

# Accepted "timeframe" values and their lifetime in days; anything else never expires.
EXPIRY_DAYS = {'1': 1, '3': 3, '7': 7}


def expiry_for_timeframe(timeframe, now=None):
    days = EXPIRY_DAYS.get(str(timeframe))
    if days is None:
        return None
    return (now or timezone.now()) + timedelta(days=days)


class InviteManager(models.Manager):
    def create_for_timeframe(self, space, timeframe, created_by=None):
        return self.create(space=space, created_by=created_by, expires_at=expiry_for_timeframe(timeframe))


class Invite(models.Model):
    """A link token granting membership of a space. Consumed when accepted."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    space = models.ForeignKey('workspaces.Space', on_delete=models.CASCADE, related_name='invites')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='created_invites'
    )
    expires_at = models.DateTimeField(null=True, blank=True, help_text="Empty means the invite never expires.")
    created_at = models.DateTimeField(auto_now_add=True)

    objects = InviteManager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Invite"
        verbose_name_plural = "Invites"

    def __str__(self):
        return f"Invite {self.pk} to {self.space_id}"

    def is_expired(self, now=None):
        return self.expires_at is not None and (now or timezone.now()) > self.expires_at

    @property
    def url(self):
        return f"{settings.COLLAPP_BASE_URL}/invitations/{self.pk}"

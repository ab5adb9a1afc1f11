import uuid

from django.db import models
from django.conf import settings


class Space(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default='')
    icon = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'id']
        verbose_name = "Space"
        verbose_name_plural = "Spaces"

    def __str__(self):
        return self.name


class SpaceUser(models.Model):
    """
    Membership of a user in a space. The owner implicitly holds every right;
    `can_edit` and `can_invite` only matter for other members.
    """
    space = models.ForeignKey(Space, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='space_memberships'
    )
    is_owner = models.BooleanField(default=False)
    can_edit = models.BooleanField(default=False)
    can_invite = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']
        verbose_name = "Space User"
        verbose_name_plural = "Space Users"
        constraints = [
            models.UniqueConstraint(fields=['space', 'user'], name='unique_space_user'),
            models.UniqueConstraint(fields=['space'], condition=models.Q(is_owner=True), name='one_owner_per_space'),
        ]

    def __str__(self):
        return f"{self.user} in {self.space}"

    @property
    def is_editor(self):
        return self.is_owner or self.can_edit

    @property
    def is_inviter(self):
        return self.is_owner or self.can_invite


class SpacePlugin(models.Model):
    """Placement of a published plugin on a space's grid, in grid units."""
    space = models.ForeignKey(Space, on_delete=models.CASCADE, related_name='placements')
    plugin = models.ForeignKey('plugins.PublishedPlugin', on_delete=models.CASCADE, related_name='placements')
    left = models.PositiveSmallIntegerField(default=0)
    top = models.PositiveSmallIntegerField(default=0)
    width = models.PositiveSmallIntegerField(default=1)
    height = models.PositiveSmallIntegerField(default=1)

    class Meta:
        ordering = ['top', 'left', 'id']
        verbose_name = "Space Plugin"
        verbose_name_plural = "Space Plugins"
        constraints = [
            models.UniqueConstraint(fields=['space', 'plugin'], name='unique_space_plugin'),
        ]

    def __str__(self):
        return f"{self.plugin_id} @ ({self.left}, {self.top}) {self.width}x{self.height}"

import uuid

from django.db import models
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator

# Grid units; the space grid is five columns wide.
MIN_PLUGIN_SIZE = 1
MAX_PLUGIN_SIZE = 4

size_validators = [MinValueValidator(MIN_PLUGIN_SIZE), MaxValueValidator(MAX_PLUGIN_SIZE)]


class PublishedPlugin(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)
    icon = models.TextField(blank=True)
    min_width = models.PositiveSmallIntegerField(default=MIN_PLUGIN_SIZE, validators=size_validators)
    max_width = models.PositiveSmallIntegerField(default=MAX_PLUGIN_SIZE, validators=size_validators)
    min_height = models.PositiveSmallIntegerField(default=MIN_PLUGIN_SIZE, validators=size_validators)
    max_height = models.PositiveSmallIntegerField(default=MAX_PLUGIN_SIZE, validators=size_validators)
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='published_plugins'
    )
    is_deleted = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'id']
        verbose_name = "Published Plugin"
        verbose_name_plural = "Published Plugins"

    def __str__(self):
        return self.name

    def fits(self, width, height):
        return (self.min_width <= width <= self.max_width
                and self.min_height <= height <= self.max_height)

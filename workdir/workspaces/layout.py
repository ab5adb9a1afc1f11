import logging
from dataclasses import dataclass, field

from django.db import transaction
from rest_framework import serializers

from plugins.models import PublishedPlugin
from .models import Space, SpacePlugin

logger = logging.getLogger(__name__)

GRID_COLUMNS = 5
LAYOUT_FIELDS = ('left', 'top', 'width', 'height')


@dataclass
class LayoutDiff:
    created: list = field(default_factory=list)   # submitted items without a placement
    updated: list = field(default_factory=list)   # (placement, submitted item) pairs
    deleted: list = field(default_factory=list)   # placements missing from the submission

    def __bool__(self):
        return bool(self.created or self.updated or self.deleted)


def diff_layout(existing, submitted):
    """
    Compares the persisted placements of a space with a submitted full layout.

    `existing` holds objects with `plugin_id` and the LAYOUT_FIELDS attributes,
    `submitted` holds mappings with `id` (the plugin id) and LAYOUT_FIELDS keys.
    Submitted items are keyed by plugin id, so a later duplicate wins.
    Placements whose position and size are unchanged appear in no set.
    """
    wanted = {str(item['id']): item for item in submitted}
    diff = LayoutDiff()

    for placement in existing:
        item = wanted.pop(str(placement.plugin_id), None)
        if item is None:
            diff.deleted.append(placement)
            continue
        if any(getattr(placement, name) != item[name] for name in LAYOUT_FIELDS):
            diff.updated.append((placement, item))

    diff.created.extend(wanted.values())
    return diff


def check_layout_plugins(items, placed_plugin_ids):
    """
    Validates submitted items against the plugin catalog: the plugin must
    exist, a deleted plugin may stay where it is but cannot be newly placed,
    and the size must respect the plugin's bounds.
    """
    plugins = PublishedPlugin.objects.in_bulk({item['id'] for item in items})
    errors = {}
    for index, item in enumerate(items):
        plugin = plugins.get(item['id'])
        if plugin is None:
            errors[str(index)] = ['The plugin does not exist.']
        elif plugin.is_deleted and item['id'] not in placed_plugin_ids:
            errors[str(index)] = ['Deleted plugins cannot be added to a space.']
        elif not plugin.fits(item['width'], item['height']):
            errors[str(index)] = [
                f"Plugin '{plugin.name}' must be {plugin.min_width}-{plugin.max_width} wide "
                f"and {plugin.min_height}-{plugin.max_height} high."
            ]
    if errors:
        raise serializers.ValidationError(errors)


def apply_layout(space, items):
    """Reconciles the space's placements with `items` in a single transaction."""
    with transaction.atomic():
        # Locking the space serializes concurrent saves, including ones that only create placements.
        Space.objects.select_for_update().get(pk=space.pk)
        existing = list(SpacePlugin.objects.select_for_update().filter(space=space))
        check_layout_plugins(items, {placement.plugin_id for placement in existing})
        diff = diff_layout(existing, items)

        if diff.deleted:
            SpacePlugin.objects.filter(pk__in=[placement.pk for placement in diff.deleted]).delete()
        if diff.updated:
            for placement, item in diff.updated:
                for name in LAYOUT_FIELDS:
                    setattr(placement, name, item[name])
            SpacePlugin.objects.bulk_update([placement for placement, _ in diff.updated], LAYOUT_FIELDS)
        if diff.created:
            SpacePlugin.objects.bulk_create([
                SpacePlugin(space=space, plugin_id=item['id'], **{name: item[name] for name in LAYOUT_FIELDS})
                for item in diff.created
            ])

    logger.info(
        "Layout of space %s saved: %d created, %d updated, %d deleted.",
        space.pk, len(diff.created), len(diff.updated), len(diff.deleted)
    )
    return diff

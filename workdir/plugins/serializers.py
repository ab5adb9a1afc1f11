from rest_framework import serializers

from workspaces.models import SpacePlugin
from .models import PublishedPlugin


class PluginAuthorSerializer(serializers.Serializer):
    name = serializers.CharField(read_only=True)


class PublishedPluginSerializer(serializers.ModelSerializer):
    class Meta:
        model = PublishedPlugin
        fields = [
            'id', 'name', 'description', 'icon',
            'min_width', 'max_width', 'min_height', 'max_height',
            'is_deleted', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class PublishedPluginDetailSerializer(PublishedPluginSerializer):
    author = PluginAuthorSerializer(read_only=True)

    class Meta(PublishedPluginSerializer.Meta):
        fields = PublishedPluginSerializer.Meta.fields + ['author']
        read_only_fields = fields


class PlacementPluginSerializer(serializers.ModelSerializer):
    class Meta:
        model = PublishedPlugin
        fields = ['name', 'icon', 'min_width', 'max_width', 'min_height', 'max_height', 'is_deleted']
        read_only_fields = fields


class SpacePlacementSerializer(serializers.ModelSerializer):
    """A placement on a space's grid together with the catalog data the grid editor shows."""
    plugin_id = serializers.UUIDField(read_only=True)
    space_id = serializers.UUIDField(read_only=True)
    plugin = PlacementPluginSerializer(read_only=True)

    class Meta:
        model = SpacePlugin
        fields = ['id', 'space_id', 'plugin_id', 'left', 'top', 'width', 'height', 'plugin']
        read_only_fields = fields

from rest_framework import serializers

from users.serializers import UserSerializer, UserSimpleSerializer
from .layout import GRID_COLUMNS
from .models import Space, SpaceUser, SpacePlugin

MEMBER_PREVIEW_COUNT = 3
# Largest value a BigAutoField user id can hold.
MAX_USER_ID = 2 ** 63 - 1


class SpaceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Space
        fields = ['id', 'name', 'description', 'icon', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'required': 'Space name is required.', 'blank': 'Space name is required.'}},
            'description': {'required': False},
            'icon': {'required': False},
        }


class SpaceListSerializer(SpaceSerializer):
    # Filled from the `other_members` prefetch set up by SpaceViewSet.get_queryset.
    users = serializers.SerializerMethodField()

    class Meta(SpaceSerializer.Meta):
        fields = SpaceSerializer.Meta.fields + ['users']

    def get_users(self, obj) -> list:
        members = getattr(obj, 'other_members', [])[:MEMBER_PREVIEW_COUNT]
        return UserSimpleSerializer([member.user for member in members], many=True).data


class PlacedPluginSerializer(serializers.Serializer):
    is_deleted = serializers.BooleanField(read_only=True)


class SpacePluginSerializer(serializers.ModelSerializer):
    plugin_id = serializers.UUIDField(read_only=True)
    plugin = PlacedPluginSerializer(read_only=True)

    class Meta:
        model = SpacePlugin
        fields = ['plugin_id', 'left', 'top', 'width', 'height', 'plugin']


class SpaceDetailSerializer(SpaceSerializer):
    plugins = SpacePluginSerializer(source='placements', many=True, read_only=True)

    class Meta(SpaceSerializer.Meta):
        fields = SpaceSerializer.Meta.fields + ['plugins']


class SpaceSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Space
        fields = ['id', 'name', 'description', 'icon']
        read_only_fields = fields


class SpacePermissionsSerializer(serializers.ModelSerializer):
    class Meta:
        model = SpaceUser
        fields = ['is_owner', 'can_edit', 'can_invite']
        read_only_fields = fields


class SpaceMemberSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = SpaceUser
        fields = ['id', 'space', 'user', 'is_owner', 'can_edit', 'can_invite', 'created_at']
        read_only_fields = fields


class LayoutItemSerializer(serializers.Serializer):
    id = serializers.UUIDField(help_text="Published plugin id.")
    left = serializers.IntegerField(min_value=0, max_value=GRID_COLUMNS - 1)
    top = serializers.IntegerField(min_value=0)
    width = serializers.IntegerField(min_value=1, max_value=GRID_COLUMNS)
    height = serializers.IntegerField(min_value=1)

    def validate(self, attrs):
        if attrs['left'] + attrs['width'] > GRID_COLUMNS:
            raise serializers.ValidationError(f"Plugin does not fit in the {GRID_COLUMNS} column grid.")
        return attrs


class MemberFlagsSerializer(serializers.Serializer):
    can_edit = serializers.BooleanField(required=False)
    can_invite = serializers.BooleanField(required=False)


class TransferOwnershipSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1, max_value=MAX_USER_ID)

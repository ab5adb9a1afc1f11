from rest_framework import serializers

from workspaces.serializers import SpaceSummarySerializer
from .models import Invite


class InviteSerializer(serializers.ModelSerializer):
    space = SpaceSummarySerializer(read_only=True)
    url = serializers.ReadOnlyField()

    class Meta:
        model = Invite
        fields = ['id', 'space', 'url', 'expires_at', 'created_by', 'created_at']
        read_only_fields = fields


class CreateInviteSerializer(serializers.Serializer):
    timeframe = serializers.CharField(
        error_messages={'required': 'Timeframe is required', 'blank': 'Timeframe is required', 'null': 'Timeframe is required'},
        help_text="'1', '3' or '7' days; any other value creates an invite that never expires."
    )


class SendInviteSerializer(serializers.Serializer):
    email = serializers.EmailField()

from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """The signed-in user's own profile. Email is managed through sign-in, not here."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'image']
        read_only_fields = ['id', 'email']
        extra_kwargs = {
            'name': {'allow_blank': False, 'error_messages': {'blank': 'User name is required.'}},
            'image': {'required': False},
        }


class UserSimpleSerializer(serializers.ModelSerializer):
    """
    Basic serializer to represent other users in a simple, non-sensitive way.
    Used for member previews in space listings.
    """
    class Meta:
        model = User
        fields = ['id', 'name', 'image']
        read_only_fields = fields

import logging

from django.contrib.auth import get_user_model
from rest_framework import generics, status
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from core.exceptions import BadRequest
from workspaces.access import find_space, require_member
from workspaces.models import SpaceUser
from workspaces.serializers import SpaceMemberSerializer
from .serializers import UserSerializer

User = get_user_model()
logger = logging.getLogger(__name__)


class CurrentUserView(generics.RetrieveUpdateDestroyAPIView):
    """
    GET    /api/user/  The signed-in user.
    PATCH  /api/user/  Update name and/or image.
    DELETE /api/user/  Delete the account; refused while the user owns spaces.
    """
    serializer_class = UserSerializer
    http_method_names = ['get', 'patch', 'delete', 'head', 'options']

    def get_object(self):
        return self.request.user

    def perform_destroy(self, instance):
        if SpaceUser.objects.filter(user=instance, is_owner=True).exists():
            raise BadRequest('Account cannot be deleted when user owns spaces.')
        user_id = instance.pk
        instance.delete()
        logger.info("User %s deleted their account.", user_id)


class UserSpacePermissionsView(generics.GenericAPIView):
    """
    GET /api/user/space/{space_id}/permissions/
    The signed-in user's membership row for a space.
    """
    serializer_class = SpaceMemberSerializer

    @extend_schema(responses={200: SpaceMemberSerializer})
    def get(self, request, *args, **kwargs):
        space = find_space(self.kwargs['space_id'])
        space_user = require_member(request.user, space)
        return Response(self.get_serializer(space_user).data, status=status.HTTP_200_OK)

import logging
import re

from django.db import transaction
from django.db.models import Prefetch
from django.http import Http404
from rest_framework import mixins, viewsets, serializers, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema

from core.exceptions import BadRequest
from core.pagination import EntityPagination
from invitations.serializers import InviteSerializer, CreateInviteSerializer
from invitations.views import create_invite
from .access import find_space, require_member, require_editor, require_inviter, require_owner
from .layout import apply_layout
from .models import Space, SpaceUser
from .serializers import (
    SpaceSerializer,
    SpaceListSerializer,
    SpaceDetailSerializer,
    SpaceMemberSerializer,
    SpacePermissionsSerializer,
    LayoutItemSerializer,
    MemberFlagsSerializer,
    TransferOwnershipSerializer,
)

logger = logging.getLogger(__name__)

# Ids longer than 18 digits cannot fit a BigAutoField and match no member.
USER_ID_PATTERN = re.compile(r'\d{1,18}')


class SpaceViewSet(mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.CreateModelMixin,
                   viewsets.GenericViewSet):
    """
    ViewSet for managing Spaces.
    Listing, retrieval, update and layout changes are scoped to the spaces the
    requesting user is a member of; anything else answers 404. Role checks
    (editor, inviter, owner) come from the caller's SpaceUser row.
    """
    serializer_class = SpaceSerializer
    pagination_class = EntityPagination

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return Space.objects.none()
        user = self.request.user
        queryset = Space.objects.filter(members__user=user)
        if self.action == 'list':
            others = SpaceUser.objects.exclude(user=user).select_related('user').order_by('created_at', 'id')
            queryset = queryset.prefetch_related(Prefetch('members', queryset=others, to_attr='other_members'))
        else:
            queryset = queryset.prefetch_related('placements__plugin')
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return SpaceListSerializer
        if self.action in ('retrieve', 'update_plugins'):
            return SpaceDetailSerializer
        return SpaceSerializer

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound('The space does not exist.')

    def perform_create(self, serializer):
        """Creates the space with an empty icon and makes the requesting user its owner."""
        with transaction.atomic():
            space = serializer.save(icon='')
            SpaceUser.objects.create(space=space, user=self.request.user, is_owner=True, can_edit=True, can_invite=True)
        logger.info("User %s created space %s.", self.request.user.pk, space.pk)

    @extend_schema(request=SpaceSerializer, responses={200: SpaceSerializer})
    def partial_update(self, request, pk=None):
        space = self.get_object()
        require_editor(require_member(request.user, space))
        serializer = SpaceSerializer(space, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    def destroy(self, request, pk=None):
        space = find_space(pk)
        require_owner(require_member(request.user, space))
        space.delete()
        logger.info("User %s deleted space %s.", request.user.pk, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=LayoutItemSerializer(many=True),
        responses={200: SpaceDetailSerializer},
        description="Replaces the space's plugin layout. Placements missing from the payload are removed, "
                    "changed ones are moved or resized and new ones are created."
    )
    @action(detail=True, methods=['put'], url_path='plugins', url_name='plugins')
    def update_plugins(self, request, pk=None):
        space = self.get_object()
        require_editor(require_member(request.user, space))
        if not isinstance(request.data, list):
            raise BadRequest('Expected a list of plugin placements.')
        serializer = LayoutItemSerializer(data=request.data, many=True)
        serializer.is_valid(raise_exception=True)
        apply_layout(space, serializer.validated_data)
        space = self.get_queryset().get(pk=space.pk)
        return Response(SpaceDetailSerializer(space).data)

    @extend_schema(request=CreateInviteSerializer, responses={201: InviteSerializer})
    @action(detail=True, methods=['post'], url_path='invite', url_name='invite')
    def generate_invite(self, request, pk=None):
        space = find_space(pk)
        require_inviter(require_member(request.user, space))
        invite = create_invite(space, request.data, request.user)
        return Response(InviteSerializer(invite).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: SpaceMemberSerializer(many=True)})
    @action(detail=True, methods=['get'], url_path='users', url_name='users')
    def members(self, request, pk=None):
        space = find_space(pk)
        require_member(request.user, space)
        members = space.members.select_related('user')
        return Response(SpaceMemberSerializer(members, many=True).data)

    @extend_schema(responses={200: SpacePermissionsSerializer})
    @action(detail=True, methods=['get'], url_path='permissions', url_name='permissions')
    def space_permissions(self, request, pk=None):
        space = find_space(pk)
        space_user = require_member(request.user, space)
        return Response(SpacePermissionsSerializer(space_user).data)

    @extend_schema(
        request=OpenApiTypes.OBJECT,
        responses={200: SpaceMemberSerializer(many=True)},
        description="Sets can_edit / can_invite per member, keyed by user id. Owner only. "
                    "The owner's own row is left unchanged."
    )
    @space_permissions.mapping.patch
    def update_space_permissions(self, request, pk=None):
        space = find_space(pk)
        require_owner(require_member(request.user, space))
        if not isinstance(request.data, dict):
            raise BadRequest('Expected an object keyed by user id.')

        flags_by_user = {}
        errors = {}
        for user_id, flags in request.data.items():
            flags_serializer = MemberFlagsSerializer(data=flags)
            if flags_serializer.is_valid():
                flags_by_user[str(user_id)] = flags_serializer.validated_data
            else:
                errors[str(user_id)] = flags_serializer.errors
        if errors:
            raise serializers.ValidationError(errors)

        members = {str(member.user_id): member for member in space.members.all()}
        unknown = sorted(set(flags_by_user) - set(members))
        if unknown:
            raise BadRequest(f"Users {', '.join(unknown)} are not members of this space.")

        changed = []
        for user_id, flags in flags_by_user.items():
            member = members[user_id]
            if member.is_owner or not flags:
                continue
            for name, value in flags.items():
                setattr(member, name, value)
            changed.append(member)
        if changed:
            SpaceUser.objects.bulk_update(changed, ['can_edit', 'can_invite'])
        logger.info("User %s updated permissions of %d members in space %s.", request.user.pk, len(changed), space.pk)

        members = space.members.select_related('user')
        return Response(SpaceMemberSerializer(members, many=True).data)

    @extend_schema(request=TransferOwnershipSerializer, responses={200: SpaceMemberSerializer(many=True)})
    @action(detail=True, methods=['patch'], url_path='transfer-ownership', url_name='transfer-ownership')
    def transfer_ownership(self, request, pk=None):
        space = find_space(pk)
        owner = require_owner(require_member(request.user, space))
        serializer = TransferOwnershipSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        target_id = serializer.validated_data['user_id']

        if target_id == request.user.pk:
            raise BadRequest('Cannot transfer ownership to the same user.')
        target = space.members.filter(user_id=target_id).first()
        if target is None:
            raise BadRequest('The new owner must be a member of this space.')

        with transaction.atomic():
            # Demote first: a space may hold only one owner row at a time.
            SpaceUser.objects.filter(pk=owner.pk).update(is_owner=False, can_edit=True, can_invite=True)
            SpaceUser.objects.filter(pk=target.pk).update(is_owner=True, can_edit=True, can_invite=True)
        logger.info("Ownership of space %s transferred from user %s to user %s.", space.pk, request.user.pk, target_id)

        members = space.members.select_related('user')
        return Response(SpaceMemberSerializer(members, many=True).data)

    @extend_schema(request=None, responses={204: None})
    @action(detail=True, methods=['delete'], url_path='user', url_name='leave')
    def leave(self, request, pk=None):
        space = find_space(pk)
        space_user = require_member(request.user, space)
        if space_user.is_owner:
            raise BadRequest('Space owner cannot leave their spaces.')
        space_user.delete()
        logger.info("User %s left space %s.", request.user.pk, space.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={204: None})
    @action(detail=True, methods=['delete'], url_path=r'user/(?P<user_id>[^/.]+)', url_name='remove-member')
    def remove_member(self, request, pk=None, user_id=None):
        space = find_space(pk)
        require_inviter(require_member(request.user, space))

        to_remove = space.members.filter(user_id=user_id).first() if USER_ID_PATTERN.fullmatch(str(user_id)) else None
        if to_remove is None:
            raise BadRequest('Requested user to remove is not a member of this space.')
        if to_remove.is_owner:
            raise BadRequest('Requested user to remove is an owner of the space.')
        to_remove.delete()
        logger.info("User %s removed user %s from space %s.", request.user.pk, user_id, space.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

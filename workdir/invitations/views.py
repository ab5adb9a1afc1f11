import logging

from django.db import transaction
from rest_framework import generics, status
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from core.exceptions import BadRequest
from workspaces.access import find_space, require_member, require_inviter, require_not_member
from workspaces.models import SpaceUser
from workspaces.serializers import SpaceMemberSerializer
from .access import find_invite, ensure_not_expired
from .models import Invite
from .serializers import InviteSerializer, CreateInviteSerializer, SendInviteSerializer
from .tasks import send_invite_email

logger = logging.getLogger(__name__)


def create_invite(space, timeframe_data, user):
    """Validates the timeframe payload and creates an invite for `space`."""
    serializer = CreateInviteSerializer(data=timeframe_data)
    serializer.is_valid(raise_exception=True)
    invite = Invite.objects.create_for_timeframe(space, serializer.validated_data['timeframe'], created_by=user)
    logger.info("User %s created invite %s for space %s (expires %s).", user.pk, invite.pk, space.pk, invite.expires_at)
    return invite


class InvitationDetailView(generics.GenericAPIView):
    """
    GET    /api/invitations/{id}/  Invite details for a prospective member.
    POST   /api/invitations/{id}/  Accept the invite and join its space.
    DELETE /api/invitations/{id}/  Revoke the invite (members with invite permission).
    """
    serializer_class = InviteSerializer

    def get_valid_invite(self):
        invite = find_invite(self.kwargs['pk'])
        require_not_member(self.request.user, invite.space)
        ensure_not_expired(invite)
        return invite

    def get(self, request, *args, **kwargs):
        invite = self.get_valid_invite()
        return Response(self.get_serializer(invite).data)

    @extend_schema(request=None, responses={201: SpaceMemberSerializer})
    def post(self, request, *args, **kwargs):
        invite = self.get_valid_invite()
        with transaction.atomic():
            consumed, _ = Invite.objects.filter(pk=invite.pk).delete()
            if not consumed:
                raise BadRequest('Invitation is no longer active.')
            space_user = SpaceUser.objects.create(space=invite.space, user=request.user)
        logger.info("User %s joined space %s with invite %s.", request.user.pk, invite.space_id, invite.pk)
        return Response(SpaceMemberSerializer(space_user).data, status=status.HTTP_201_CREATED)

    def delete(self, request, *args, **kwargs):
        invite = find_invite(self.kwargs['pk'])
        require_inviter(require_member(request.user, invite.space))
        invite.delete()
        logger.info("User %s deleted invite %s of space %s.", request.user.pk, self.kwargs['pk'], invite.space_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class SendInvitationView(generics.GenericAPIView):
    """
    POST /api/invitations/{id}/send/
    Emails the invite link. Payload: { "email": "<address>" }
    """
    serializer_class = SendInviteSerializer

    @extend_schema(request=SendInviteSerializer, responses={200: InviteSerializer})
    def post(self, request, *args, **kwargs):
        invite = find_invite(self.kwargs['pk'])
        require_inviter(require_member(request.user, invite.space))
        ensure_not_expired(invite)

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        send_invite_email.delay(str(invite.pk), serializer.validated_data['email'], request.user.display_name)
        logger.info("User %s queued invite %s for delivery.", request.user.pk, invite.pk)
        return Response(InviteSerializer(invite).data)


class SpaceInvitationsView(generics.GenericAPIView):
    """
    GET  /api/invitations/space/{space_id}/  Lists the space's invites.
    POST /api/invitations/space/{space_id}/  Creates an invite. Payload: { "timeframe": "1" | "3" | "7" | ... }
    Both require invite permission in the space.
    """
    serializer_class = InviteSerializer

    def get_space_object(self):
        space = find_space(self.kwargs['space_id'])
        require_inviter(require_member(self.request.user, space))
        return space

    def get(self, request, *args, **kwargs):
        space = self.get_space_object()
        invites = Invite.objects.filter(space=space).select_related('space')
        return Response(self.get_serializer(invites, many=True).data)

    @extend_schema(request=CreateInviteSerializer, responses={201: InviteSerializer})
    def post(self, request, *args, **kwargs):
        space = self.get_space_object()
        invite = create_invite(space, request.data, request.user)
        return Response(self.get_serializer(invite).data, status=status.HTTP_201_CREATED)

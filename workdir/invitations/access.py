from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import NotFound

from core.exceptions import BadRequest
from .models import Invite


def find_invite(invite_id):
    try:
        return Invite.objects.select_related('space').get(pk=invite_id)
    except (Invite.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound('The invitation was not found.')


def ensure_not_expired(invite):
    if invite.is_expired():
        raise BadRequest('Invitation is no longer active.')
    return invite

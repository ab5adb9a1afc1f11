"""
Request validation shared by every endpoint that acts on a space.

Each helper either returns the object it looked up or raises the DRF
exception the caller should surface. Endpoints chain them, e.g.
``find_space`` -> ``require_member`` -> ``require_inviter``.
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import NotFound, PermissionDenied

from core.exceptions import BadRequest
from .models import Space, SpaceUser


def find_space(space_id):
    try:
        return Space.objects.get(pk=space_id)
    except (Space.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFound('The space was not found.')


def find_space_user(user, space):
    return SpaceUser.objects.filter(space=space, user=user).first()


def require_member(user, space):
    space_user = find_space_user(user, space)
    if space_user is None:
        raise PermissionDenied('This user is not a member of this space.')
    return space_user


def require_not_member(user, space):
    if SpaceUser.objects.filter(space=space, user=user).exists():
        raise BadRequest('This user is already a member of this space.')


def require_inviter(space_user):
    if not space_user.is_inviter:
        raise PermissionDenied('Only user with invite permission can manage invitations.')
    return space_user


def require_editor(space_user):
    if not space_user.is_editor:
        raise PermissionDenied('Only user with edit permission can adjust the space.')
    return space_user


def require_owner(space_user):
    if not space_user.is_owner:
        raise PermissionDenied('Only space owner can perform this action.')
    return space_user

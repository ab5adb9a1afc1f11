from rest_framework import status
from rest_framework.exceptions import APIException


class BadRequest(APIException):
    """
    A single-message 400, rendered as {"detail": "..."} like NotFound and
    PermissionDenied. Serializer field errors keep using ValidationError.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request.'
    default_code = 'bad_request'

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


class Conflict(exceptions.APIException):
    """The request clashes with the current state of a record."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The request conflicts with the current state of the resource.'
    default_code = 'conflict'


def _first_message(errors):
    if isinstance(errors, dict):
        for value in errors.values():
            message = _first_message(value)
            if message:
                return message
    elif isinstance(errors, list):
        for value in errors:
            message = _first_message(value)
            if message:
                return message
    elif errors:
        return str(errors)
    return None


def api_exception_handler(exc, context):
    """
    Map exceptions onto the JSON shape the frontend expects.

    Validation failures become 422 with per-field messages, every other API
    error keeps its status and carries a ``message``. Unexpected exceptions
    are logged and answered with a generic 500 after rolling back the
    request's transaction.
    """
    if isinstance(exc, exceptions.ValidationError):
        errors = exc.detail if isinstance(exc.detail, dict) else {'non_field_errors': exc.detail}
        set_rollback()
        return Response(
            {'message': _first_message(errors) or 'The given data was invalid.', 'errors': errors},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, (Http404, exceptions.NotFound)):
            response.data = {'message': 'Not found.'}
        elif isinstance(exc, (DjangoPermissionDenied, exceptions.APIException)):
            response.data = {'message': _first_message(response.data) or str(exc)}
        return response

    view = context.get('view')
    logger.exception('Unhandled error in %s', view.__class__.__name__ if view else 'unknown view')
    set_rollback()
    return Response({'message': 'Server Error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

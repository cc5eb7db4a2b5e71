"""
Custom exception handling for the API.

Ensures proper HTTP status codes are returned for authentication failures
and that reorder failures escaping a view keep their wire format.
"""

from django.contrib.auth.models import AnonymousUser
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework.response import Response
from rest_framework.views import exception_handler

from categories.exceptions import ReorderError


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns appropriate HTTP status codes:
    - ReorderError -> 400 with {"detail", "code", "ids"}
    - Anonymous user + PermissionDenied (not CSRF) -> 401 Unauthorized
    - CSRF failures -> 403 Forbidden
    - Authenticated user + PermissionDenied -> 403 Forbidden
    - Everything else -> original status code
    """
    if isinstance(exc, ReorderError):
        return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)
    if response is None:
        return None

    request = context.get("request")
    user = getattr(request, "user", None) if request is not None else None

    if isinstance(exc, PermissionDenied):
        is_csrf_failure = "csrf" in str(exc).lower()
        if isinstance(user, AnonymousUser) and not is_csrf_failure:
            response.status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, NotAuthenticated):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    return response

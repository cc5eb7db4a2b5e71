"""
Standardized error handling utilities for the category API views.

This module provides consistent, security-focused error response builders
that ensure uniform error handling across all API endpoints while preventing
information leakage.

Key Features:
- Consistent error response formats
- Security-focused responses that don't leak resource existence
- Typed reorder failures rendered as {"detail", "code", "ids"}
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Model, QuerySet
from rest_framework import status
from rest_framework.response import Response

from api.messages import ErrorMessages
from categories.exceptions import ReorderError
from categories.reordering import RejectReason

logger = logging.getLogger(__name__)


class APIError:
    """Standard API error response builder."""

    # Standard error messages - use centralized ErrorMessages
    RESOURCE_NOT_FOUND = ErrorMessages.RESOURCE_NOT_FOUND
    PERMISSION_DENIED = ErrorMessages.PERMISSION_DENIED
    VALIDATION_ERROR = ErrorMessages.VALIDATION_ERROR

    @staticmethod
    def not_found(detail: Optional[str] = None) -> Response:
        """
        Return a standard 404 Not Found response.

        Args:
            detail: Custom error message. If None, uses standard message.

        Returns:
            Response with 404 status and standard error format.
        """
        return Response(
            {"detail": detail or APIError.RESOURCE_NOT_FOUND},
            status=status.HTTP_404_NOT_FOUND,
        )

    @staticmethod
    def create_permission_denied_response(detail: Optional[str] = None) -> Response:
        """Return a standard 403 Permission Denied response."""
        return Response(
            {"detail": detail or APIError.PERMISSION_DENIED},
            status=status.HTTP_403_FORBIDDEN,
        )

    @staticmethod
    def create_validation_error_response(
        errors: Union[Dict[str, List[str]], str, DjangoValidationError],
    ) -> Response:
        """
        Return a standardized validation error response.

        Args:
            errors: Validation errors in various formats:
                   - Dict mapping field names to error lists
                   - String for general validation error
                   - Django ValidationError instance

        Returns:
            Response with 400 status and standardized error format.
        """
        if isinstance(errors, DjangoValidationError):
            if hasattr(errors, "message_dict"):
                return Response(
                    {field: list(messages) for field, messages in errors.message_dict.items()},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            error_message = errors.messages[0] if errors.messages else str(errors)
            return Response(
                {"detail": str(error_message)}, status=status.HTTP_400_BAD_REQUEST
            )
        elif isinstance(errors, dict):
            return Response(errors, status=status.HTTP_400_BAD_REQUEST)
        elif isinstance(errors, str):
            return Response({"detail": errors}, status=status.HTTP_400_BAD_REQUEST)
        else:
            return Response(
                {"detail": APIError.VALIDATION_ERROR},
                status=status.HTTP_400_BAD_REQUEST,
            )

    @staticmethod
    def reorder_failed(error: ReorderError) -> Response:
        """
        Return a 400 response for a failed reorder commit.

        The body carries the error's stable ``code`` and the offending
        ``ids`` so clients can map it back to the typed exception.
        """
        return Response(error.to_dict(), status=status.HTTP_400_BAD_REQUEST)

    @staticmethod
    def move_rejected(reason: RejectReason) -> Response:
        """Return a 400 response for a drop the planner refused."""
        return Response(
            {"detail": reason.message, "code": reason.value},
            status=status.HTTP_400_BAD_REQUEST,
        )


class SecurityResponseHelper:
    """Helper for security-focused API responses."""

    @staticmethod
    def resource_access_denied() -> Response:
        """
        Standard response when user doesn't have access to a resource.

        Returns 404 to hide the existence of the resource, making private
        resources indistinguishable from non-existent ones.
        """
        return APIError.not_found()

    @staticmethod
    def safe_get_or_404(
        queryset: QuerySet[Model],
        user: Any,
        permission_check: Optional[Callable[[Any, Model], bool]] = None,
        **filter_kwargs: Any,
    ) -> Tuple[Optional[Model], Optional[Response]]:
        """
        Safely get an object or return 404 response, with optional permission check.

        Args:
            queryset: Django queryset to search in.
            user: User making the request.
            permission_check: Optional callable that takes (user, obj) and returns bool.
            **filter_kwargs: Additional filters for the queryset.

        Returns:
            Tuple of (object, None) if found and authorized, or (None, Response) if not.

        Example:
            >>> tenant, error_response = SecurityResponseHelper.safe_get_or_404(
            ...     Tenant.objects,
            ...     request.user,
            ...     lambda u, t: t.can_view(u),
            ...     pk=tenant_id,
            ... )
            >>> if error_response:
            ...     return error_response
        """
        try:
            obj = queryset.get(**filter_kwargs)
        except (queryset.model.DoesNotExist, ValueError, TypeError, DjangoValidationError):
            return None, APIError.not_found()

        if permission_check and not permission_check(user, obj):
            return None, APIError.not_found()

        return obj, None


def handle_common_api_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator converting service-layer exceptions to standardized responses.

    Django ValidationErrors become 400 validation responses and
    ReorderErrors become 400 responses carrying their code and ids.
    """

    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except DjangoValidationError as e:
            return APIError.create_validation_error_response(e)
        except ReorderError as e:
            logger.warning(f"Reorder rejected ({e.code}): {e.message} {e.ids}")
            return APIError.reorder_failed(e)

    wrapper.__name__ = func.__name__
    wrapper.__doc__ = func.__doc__
    return wrapper

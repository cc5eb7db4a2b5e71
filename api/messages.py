"""
Centralized error messages for consistent API responses.

This module provides a single source of truth for all error messages used
across the API, ensuring consistency and making maintenance easier.
"""


class ErrorMessages:
    """Centralized error messages for consistent API responses."""

    # Resource not found messages
    RESOURCE_NOT_FOUND = "Resource not found."
    TENANT_NOT_FOUND = "Tenant not found."
    CATEGORY_NOT_FOUND = "Category not found."

    # Permission messages
    PERMISSION_DENIED = "Permission denied."

    # Validation messages
    FIELD_REQUIRED = "This field is required."
    FIELD_INVALID = "This field is invalid."
    VALIDATION_ERROR = "Validation error."

    # Category-specific validation
    TENANT_REQUIRED = "Tenant ID is required."
    INVALID_TENANT = "Invalid tenant ID."
    PARENT_OTHER_TENANT = "Parent category must belong to the same tenant."
    TARGET_REQUIRED = "Target category ID is required."

    @staticmethod
    def too_many_patches(limit: int) -> str:
        """Return the reorder size limit message."""
        return f"Maximum {limit} categories can be reordered at once."


class FieldErrorMessages:
    """Field-specific error message builders."""

    @staticmethod
    def required(field_name: str) -> str:
        """Build a required field error message."""
        return f"{field_name} is required."

    @staticmethod
    def invalid(field_name: str) -> str:
        """Build an invalid field error message."""
        return f"Invalid {field_name}."

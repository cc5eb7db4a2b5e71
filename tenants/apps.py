"""
Django app configuration for the tenants app.

A tenant is the scope every category operation is restricted to; users
reach a tenant's data through a membership role.
"""

from django.apps import AppConfig


class TenantsConfig(AppConfig):
    """Configuration for the tenants app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "tenants"
    verbose_name = "Tenants"

"""
Django app configuration for the categories app.

Owns the Category tree models, the service layer that keeps sibling
groups dense, and the ``categories.reordering`` engine.
"""

from django.apps import AppConfig


class CategoriesConfig(AppConfig):
    """Configuration for the categories app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "categories"
    verbose_name = "Categories"

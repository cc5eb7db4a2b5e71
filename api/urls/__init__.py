"""
API URLs configuration.

Main API URL patterns that include all sub-modules.
"""

from django.urls import include, path

app_name = "api"

urlpatterns = [
    # Category management endpoints
    path("categories/", include("api.urls.category_urls", namespace="categories")),
]

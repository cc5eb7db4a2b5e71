"""
URL configuration for category API endpoints.
"""

from django.urls import path

from api.views.categories import (
    CategoryDetailAPIView,
    CategoryListCreateAPIView,
    CategoryMoveAPIView,
    CategoryReorderAPIView,
)

app_name = "categories"

urlpatterns = [
    path("", CategoryListCreateAPIView.as_view(), name="list"),
    path("reorder/", CategoryReorderAPIView.as_view(), name="reorder"),
    path("<uuid:pk>/", CategoryDetailAPIView.as_view(), name="detail"),
    path("<uuid:pk>/move/", CategoryMoveAPIView.as_view(), name="move"),
]

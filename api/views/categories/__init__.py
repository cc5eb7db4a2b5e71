"""
Category API views.
"""

from .crud_views import CategoryDetailAPIView, CategoryListCreateAPIView
from .reorder_views import CategoryMoveAPIView, CategoryReorderAPIView

__all__ = [
    "CategoryListCreateAPIView",
    "CategoryDetailAPIView",
    "CategoryReorderAPIView",
    "CategoryMoveAPIView",
]

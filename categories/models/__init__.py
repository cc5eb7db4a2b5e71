from .category import Category, CategoryQuerySet, CategoryTranslation
from .drag_session import DragSession, DropOutcome

__all__ = [
    "Category",
    "CategoryQuerySet",
    "CategoryTranslation",
    "DragSession",
    "DropOutcome",
]

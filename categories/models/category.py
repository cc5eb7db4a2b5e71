from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from categories.reordering import CategoryNode, NodePatch, NodeStore, plan_removal
from core.models import (
    ActivatableMixin,
    AuditableMixin,
    DescribedModelMixin,
    NamedModelMixin,
    TimestampedMixin,
)
from tenants.models import Tenant

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractUser


class CategoryQuerySet(models.QuerySet):
    """QuerySet helpers for tenant-scoped category trees."""

    def for_tenant(self, tenant_id) -> "CategoryQuerySet":
        return self.filter(tenant_id=tenant_id)

    def tree_ordered(self) -> "CategoryQuerySet":
        """Roots first, then by order, then by creation time."""
        return self.order_by(
            F("parent").asc(nulls_first=True), "order", "created_at"
        )

    def snapshot(self, tenant_id, lock: bool = False) -> NodeStore:
        """
        Load a tenant's categories as a NodeStore.

        Args:
            tenant_id: Tenant to load
            lock: Lock the rows for the rest of the transaction

        Returns:
            Snapshot with translations carried in each node's extra data
        """
        queryset = self.for_tenant(tenant_id)
        if lock:
            # select_for_update cannot be combined with nullable outer joins
            list(queryset.select_for_update().values_list("pk", flat=True))
        queryset = queryset.tree_ordered().prefetch_related("translations")
        return NodeStore(category.to_node() for category in queryset)

    def apply_patches(self, patches: Iterable[NodePatch]) -> int:
        """
        Write parent/order patches without validating them.

        Callers are responsible for validation; see CategoryService.reorder.

        Returns:
            Number of rows updated
        """
        patches = list(patches)
        if not patches:
            return 0

        by_id = {patch.id: patch for patch in patches}
        now = timezone.now()
        categories = list(self.filter(pk__in=list(by_id)))
        for category in categories:
            patch = by_id[str(category.pk)]
            category.parent_id = uuid.UUID(patch.parent_id) if patch.parent_id else None
            category.order = patch.order
            category.updated_at = now

        return self.bulk_update(categories, ["parent", "order", "updated_at"])


class Category(
    TimestampedMixin,
    NamedModelMixin,
    DescribedModelMixin,
    ActivatableMixin,
    AuditableMixin,
):
    """
    Category in a tenant's two-level category tree.

    Provides standardized fields through mixins:
    - TimestampedMixin: created_at, updated_at fields with indexing
    - NamedModelMixin: name field (default-language name) with __str__ method
    - DescribedModelMixin: description field
    - ActivatableMixin: is_active flag
    - AuditableMixin: created_by, modified_by tracking with enhanced save()

    Hierarchy features:
    - parent: Optional parent category; roots have none
    - order: dense 0-based rank among siblings (same tenant and parent)
    - Children are promoted to root level when their parent is deleted

    ``order`` and ``parent`` should only be changed through
    CategoryService so every sibling group stays dense.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant: models.ForeignKey = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="categories",
        help_text="The tenant this category belongs to",
    )

    parent: models.ForeignKey = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="children",
        help_text="Parent category in the hierarchy",
    )

    order = models.PositiveIntegerField(
        default=0,
        help_text="Position among siblings (0 = first)",
    )

    color = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Display color, e.g. #FF6B6B",
    )

    objects = CategoryQuerySet.as_manager()

    class Meta:
        db_table = "categories_category"
        ordering = ["order", "created_at"]
        indexes = [
            models.Index(
                fields=["tenant", "parent", "order"],
                name="categories_tree_order_idx",
            ),
        ]
        verbose_name = "Category"
        verbose_name_plural = "Categories"

    def to_node(self) -> CategoryNode:
        """Return the reordering engine's view of this category."""
        return CategoryNode(
            id=str(self.pk),
            parent_id=str(self.parent_id) if self.parent_id else None,
            order=self.order,
            tenant_id=str(self.tenant_id),
            extra={
                "name": self.name,
                "description": self.description,
                "color": self.color or None,
                "isActive": self.is_active,
                "translations": [
                    {
                        "lang": translation.lang,
                        "name": translation.name,
                        "description": translation.description,
                    }
                    for translation in self.translations.all()
                ],
            },
        )

    def can_view(self, user: Optional["AbstractUser"]) -> bool:
        return self.tenant.can_view(user)

    def can_edit(self, user: Optional["AbstractUser"]) -> bool:
        return self.tenant.can_edit(user)

    def get_siblings(self) -> QuerySet["Category"]:
        """Get sibling categories (same tenant and parent, excluding self)."""
        return Category.objects.filter(
            tenant_id=self.tenant_id, parent_id=self.parent_id
        ).exclude(pk=self.pk)

    def get_ancestors(self) -> List["Category"]:
        """Return ancestors ordered from immediate parent to root."""
        ancestors = []
        current = self.parent
        visited = set()

        # Safety limit against corrupted cycles
        while current and current.pk not in visited and len(visited) < 50:
            visited.add(current.pk)
            ancestors.append(current)
            current = current.parent

        return ancestors

    def get_depth(self) -> int:
        """Depth in the hierarchy (0 for roots)."""
        return len(self.get_ancestors())

    def get_display_name(self, lang: Optional[str] = None) -> str:
        """Translated name for ``lang``, falling back to the default name."""
        if lang:
            for translation in self.translations.all():
                if translation.lang == lang and translation.name:
                    return translation.name
        return self.name

    def clean(self) -> None:
        """
        Validate the category instance.

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.parent_id and self.parent_id == self.pk:
            raise ValidationError("A category cannot be its own parent.")

        if not self.parent_id or not self.tenant_id:
            return

        parent = self.parent
        if parent.tenant_id != self.tenant_id:
            raise ValidationError("Parent category must belong to the same tenant.")

        # Only existing categories can have descendants
        if not self._state.adding and any(
            ancestor.pk == self.pk for ancestor in parent.get_ancestors()
        ):
            raise ValidationError(
                "Circular reference detected: a category cannot be moved "
                "under its own descendant."
            )

    def save(self, *args, **kwargs) -> None:
        """Save the category after running model validation."""
        self.clean()
        super().save(*args, **kwargs)

    def delete(self, using=None, keep_parents=False) -> tuple:
        """
        Delete the category and keep the remaining tree dense.

        Children are promoted to root level after the existing roots and the
        former sibling group is renumbered, in the same transaction.
        """
        with transaction.atomic(using=using):
            patches = plan_removal(
                str(self.pk), Category.objects.snapshot(self.tenant_id, lock=True)
            )
            result = super().delete(using=using, keep_parents=keep_parents)
            Category.objects.apply_patches(patches)
        return result


class CategoryTranslation(models.Model):
    """Per-language name and description of a category."""

    LANG_CHOICES = [
        ("hu", "Hungarian"),
        ("en", "English"),
        ("de", "German"),
    ]

    category = models.ForeignKey(
        Category,
        on_delete=models.CASCADE,
        related_name="translations",
        help_text="The translated category",
    )
    lang = models.CharField(max_length=5, choices=LANG_CHOICES)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")

    class Meta:
        db_table = "categories_translation"
        constraints = [
            models.UniqueConstraint(
                fields=["category", "lang"], name="unique_category_translation_lang"
            ),
        ]
        ordering = ["category", "lang"]
        verbose_name = "Category Translation"
        verbose_name_plural = "Category Translations"

    def __str__(self) -> str:
        return f"{self.name} ({self.lang})"

"""
Category service layer for tree-changing operations.

This module provides centralized business logic for categories. Every
operation that touches ``parent`` or ``order`` runs here, inside a single
transaction, so each sibling group stays dense (orders exactly 0..n-1) and
the tree stays acyclic and within its tenant.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from categories.exceptions import (
    CrossTenantReference,
    InvalidPatchList,
    InvariantViolation,
    NodeNotFound,
    ParentNotFound,
)
from categories.reordering import (
    CategoryNode,
    NodePatch,
    NodeStore,
    PlanResult,
    plan,
    plan_placement,
    plan_repair,
)
from tenants.models import Tenant

from .models import Category, CategoryTranslation

logger = logging.getLogger(__name__)

PatchLike = Union[NodePatch, Dict[str, Any]]


def normalize_id(value: Any) -> Optional[str]:
    """Return the canonical string form of a category id, or None if invalid."""
    if value is None:
        return None
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        return None


def _describe_user(user: Optional[Any]) -> str:
    if user is None or not getattr(user, "pk", None):
        return "system"
    return f"User {user.username} (ID: {user.pk})"


class CategoryService:
    """Service class for category tree operations."""

    DEFAULT_MAX_REORDER_PATCHES = 500

    @classmethod
    def max_reorder_patches(cls) -> int:
        return getattr(
            settings, "CATEGORY_MAX_REORDER_PATCHES", cls.DEFAULT_MAX_REORDER_PATCHES
        )

    # Reads

    @classmethod
    def list_nodes(cls, tenant_id: Any) -> List[CategoryNode]:
        """
        Return every category of the tenant as nodes.

        Roots come first, then each group by order and creation time.
        """
        queryset = (
            Category.objects.for_tenant(tenant_id)
            .tree_ordered()
            .prefetch_related("translations")
        )
        return [category.to_node() for category in queryset]

    @classmethod
    def snapshot(cls, tenant_id: Any, lock: bool = False) -> NodeStore:
        return Category.objects.snapshot(tenant_id, lock=lock)

    # Create / update / delete

    @classmethod
    @transaction.atomic
    def create_category(
        cls,
        tenant: Tenant,
        name: str,
        parent: Optional[Category] = None,
        order: Optional[int] = None,
        user: Optional[Any] = None,
        translations: Optional[Iterable[Dict[str, str]]] = None,
        **fields: Any,
    ) -> Category:
        """
        Create a category at the end of its sibling group.

        Args:
            tenant: Owning tenant
            name: Default-language name
            parent: Parent category, None for a root
            order: Insert position; later siblings shift down. Clamped to the
                group size, None appends.
            user: User performing the operation (audit fields)
            translations: Iterable of {"lang", "name", "description"} dicts
            **fields: Other model fields (description, color, is_active)

        Raises:
            ValidationError: If the parent belongs to another tenant
        """
        if parent is not None and parent.tenant_id != tenant.pk:
            raise ValidationError("Parent category must belong to the same tenant.")

        siblings = Category.objects.filter(tenant=tenant, parent=parent)
        size = len(siblings.select_for_update().values_list("pk", flat=True))

        if order is None or order >= size:
            order = size
        else:
            order = max(order, 0)
            siblings.filter(order__gte=order).update(order=F("order") + 1)

        category = Category(
            tenant=tenant, parent=parent, name=name, order=order, **fields
        )
        category.save(user=user)

        if translations:
            cls.set_translations(category, translations)

        logger.info(
            f"{_describe_user(user)} created category {category.pk} "
            f"in tenant {tenant.pk} at order {order}"
        )
        return category

    @classmethod
    def set_translations(
        cls, category: Category, translations: Iterable[Dict[str, str]]
    ) -> None:
        """Create or update the given per-language translations."""
        for item in translations:
            CategoryTranslation.objects.update_or_create(
                category=category,
                lang=item["lang"],
                defaults={
                    "name": item["name"],
                    "description": item.get("description") or "",
                },
            )

    @classmethod
    @transaction.atomic
    def update_category(
        cls,
        category: Category,
        user: Optional[Any] = None,
        translations: Optional[Iterable[Dict[str, str]]] = None,
        **changes: Any,
    ) -> Category:
        """
        Update a category's fields.

        A ``parent`` or ``order`` change is planned like a placement and
        committed through ``reorder``: the category is inserted at the new
        position (appended when no order is given) and the group it left is
        renumbered.

        Raises:
            ValidationError: If the new parent would create a cycle or
                belongs to another tenant
        """
        moving = "parent" in changes or changes.get("order") is not None
        parent = changes.pop("parent", category.parent)
        order = changes.pop("order", None)

        if moving:
            parent_id = str(parent.pk) if parent is not None else None
            if parent_id != (str(category.parent_id) if category.parent_id else None):
                position = order
            else:
                position = category.order if order is None else order

            result = plan_placement(
                str(category.pk),
                parent_id,
                position,
                cls.snapshot(category.tenant_id, lock=True),
            )
            if not result.accepted:
                raise ValidationError(result.rejected.message)
            if result.patches:
                cls.reorder(category.tenant_id, result.patches, user=user)
            category.refresh_from_db(fields=["parent", "order"])

        for field, value in changes.items():
            setattr(category, field, value)
        category.save(user=user)

        if translations is not None:
            cls.set_translations(category, translations)

        logger.info(f"{_describe_user(user)} updated category {category.pk}")
        return category

    @classmethod
    @transaction.atomic
    def delete_category(cls, category: Category, user: Optional[Any] = None) -> None:
        """Delete a category, promoting its children to root level."""
        category_id, tenant_id = category.pk, category.tenant_id
        category.delete()
        logger.info(
            f"{_describe_user(user)} deleted category {category_id} "
            f"from tenant {tenant_id}"
        )

    # Reordering

    @classmethod
    @transaction.atomic
    def reorder(
        cls,
        tenant_id: Any,
        patches: Sequence[PatchLike],
        user: Optional[Any] = None,
    ) -> List[CategoryNode]:
        """
        Atomically apply a reorder patch list to one tenant's tree.

        Validation runs in this order and nothing is written unless every
        step passes:

        1. every patched id exists and belongs to the tenant
        2. every non-null parent id exists and belongs to the tenant
        3. no id is patched twice and no order is negative
        4. the patched tree introduces no cycle, gap or duplicate order

        Args:
            tenant_id: Tenant whose tree is reordered
            patches: NodePatch values or {"id", "parentId", "order"} dicts
            user: User performing the operation (for logging)

        Returns:
            The tenant's refreshed node list

        Raises:
            NodeNotFound, ParentNotFound, CrossTenantReference,
            InvalidPatchList, InvariantViolation
        """
        tenant_key = str(tenant_id)
        try:
            patches = [
                patch if isinstance(patch, NodePatch) else NodePatch.from_dict(patch)
                for patch in patches
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidPatchList(f"Malformed reorder patch: {exc}") from exc

        limit = cls.max_reorder_patches()
        if len(patches) > limit:
            raise InvalidPatchList(f"Maximum {limit} categories can be reordered at once.")

        if not patches:
            return cls.list_nodes(tenant_id)

        # Step 1: patched nodes
        node_ids = {patch.id: normalize_id(patch.id) for patch in patches}
        cls._check_references(
            tenant_key, node_ids, NodeNotFound, "Some categories were not found."
        )

        # Step 2: parents
        parent_ids = {
            patch.parent_id: normalize_id(patch.parent_id)
            for patch in patches
            if patch.parent_id is not None
        }
        cls._check_references(
            tenant_key, parent_ids, ParentNotFound, "Some parent categories were not found."
        )

        # Step 3: the patch list itself
        normalized = [
            NodePatch(
                id=node_ids[patch.id],
                parent_id=parent_ids[patch.parent_id] if patch.parent_id else None,
                order=patch.order,
            )
            for patch in patches
        ]
        seen = set()
        duplicates = set()
        for patch in normalized:
            if patch.id in seen:
                duplicates.add(patch.id)
            seen.add(patch.id)
        if duplicates:
            raise InvalidPatchList(
                "A category can only appear once per reorder.", duplicates
            )
        negative = [patch.id for patch in normalized if patch.order < 0]
        if negative:
            raise InvalidPatchList("Orders must be zero or greater.", negative)

        # Step 4: invariants of the resulting tree
        before = cls.snapshot(tenant_id, lock=True)
        existing_problems = set(before.check_invariants())
        problems = [
            problem
            for problem in before.apply(normalized).check_invariants()
            if problem not in existing_problems
        ]
        if problems:
            logger.warning(
                f"Rejected reorder of {len(normalized)} categories in tenant "
                f"{tenant_key}: {'; '.join(problems)}"
            )
            raise InvariantViolation(ids=seen, problems=problems)

        # Step 5: write
        updated = Category.objects.apply_patches(normalized)
        logger.info(
            f"{_describe_user(user)} reordered {updated} categories "
            f"in tenant {tenant_key}"
        )
        for patch in normalized:
            logger.debug(
                f"Category {patch.id}: parent={patch.parent_id} order={patch.order}"
            )

        return cls.list_nodes(tenant_id)

    @staticmethod
    def _check_references(
        tenant_key: str,
        ids: Dict[str, Optional[str]],
        not_found_error: type,
        message: str,
    ) -> None:
        """Raise if any id is unknown or belongs to another tenant."""
        valid = {value for value in ids.values() if value is not None}
        owners = {
            str(pk): str(owner)
            for pk, owner in Category.objects.filter(pk__in=valid).values_list(
                "pk", "tenant_id"
            )
        }

        missing = [raw for raw, value in ids.items() if value not in owners]
        if missing:
            raise not_found_error(message, missing)

        foreign = [raw for raw, value in ids.items() if owners[value] != tenant_key]
        if foreign:
            raise CrossTenantReference(ids=foreign)

    @classmethod
    @transaction.atomic
    def move(
        cls,
        tenant_id: Any,
        dragged_id: Any,
        target_id: Any,
        user: Optional[Any] = None,
    ) -> Tuple[PlanResult, List[CategoryNode]]:
        """
        Drop one category onto another, planned against a fresh snapshot.

        Returns:
            Tuple of (plan result, refreshed node list). Rejected and empty
            plans write nothing.
        """
        store = cls.snapshot(tenant_id, lock=True)
        result = plan(
            normalize_id(dragged_id) or str(dragged_id),
            normalize_id(target_id) or str(target_id),
            store,
        )

        if not result.accepted:
            logger.info(
                f"{_describe_user(user)} drop of {dragged_id} onto {target_id} "
                f"rejected: {result.rejected.value}"
            )
            return result, cls.list_nodes(tenant_id)
        if result.is_empty:
            return result, cls.list_nodes(tenant_id)

        return result, cls.reorder(tenant_id, result.patches, user=user)

    @classmethod
    @transaction.atomic
    def repair_order(cls, tenant_id: Any) -> Tuple[NodePatch, ...]:
        """
        Restore dense sibling orders and detach cyclic or orphaned nodes.

        Returns:
            The patches that were written (empty for a healthy tree)
        """
        patches = plan_repair(cls.snapshot(tenant_id, lock=True))
        if patches:
            Category.objects.apply_patches(patches)
            logger.warning(
                f"Repaired {len(patches)} category positions in tenant {tenant_id}"
            )
        return patches

"""
Turn a drag-and-drop gesture into the smallest set of position changes.

Drop semantics, given the dragged node D and the node T it was dropped on:

- T is a child: D becomes T's sibling, placed immediately before T.
- T is a root: D becomes T's last child.

The destination sibling group is renumbered 0..n-1 and, when D leaves its
old group, that group is renumbered as a whole as well. Only nodes whose
parent or order actually changes are patched.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .guard import find_cycles, is_descendant
from .nodes import CategoryNode, NodePatch, NodeStore

logger = logging.getLogger(__name__)


class RejectReason(str, Enum):
    """Why a move was refused without contacting the server."""

    NO_OP = "no_op"
    CYCLE_WOULD_FORM = "cycle_would_form"
    UNKNOWN_NODE = "unknown_node"
    CROSS_TENANT = "cross_tenant"

    @property
    def message(self) -> str:
        return REJECT_MESSAGES[self]


REJECT_MESSAGES = {
    RejectReason.NO_OP: "A category cannot be dropped onto itself.",
    RejectReason.CYCLE_WOULD_FORM: "Cannot drop a category onto its own child.",
    RejectReason.UNKNOWN_NODE: "Category not found.",
    RejectReason.CROSS_TENANT: "Categories belong to different tenants.",
}


@dataclass(frozen=True)
class PlanResult:
    """Either an accepted (possibly empty) patch list or a rejection."""

    patches: Tuple[NodePatch, ...] = ()
    rejected: Optional[RejectReason] = None

    @classmethod
    def reject(cls, reason: RejectReason) -> "PlanResult":
        return cls(rejected=reason)

    @property
    def accepted(self) -> bool:
        return self.rejected is None

    @property
    def is_empty(self) -> bool:
        return not self.patches


def resolve_target_parent(
    dragged: CategoryNode, target: CategoryNode
) -> Optional[str]:
    """Pick the parent the dragged node will have after the drop."""
    parent_id = target.parent_id if target.parent_id is not None else target.id
    if parent_id == dragged.id:
        # Only reachable when a root is dropped on itself; promote to root
        return None
    return parent_id


def _renumber(
    group: Sequence[CategoryNode], parent_id: Optional[str]
) -> List[NodePatch]:
    return [
        NodePatch(id=node.id, parent_id=parent_id, order=index)
        for index, node in enumerate(group)
        if node.order != index or node.parent_id != parent_id
    ]


def _place(
    scoped: NodeStore,
    node: CategoryNode,
    parent_id: Optional[str],
    position: Optional[int],
) -> Tuple[NodePatch, ...]:
    destination = [n for n in scoped.children(parent_id) if n.id != node.id]
    if position is None or position > len(destination):
        position = len(destination)
    destination.insert(max(position, 0), node)

    patches = _renumber(destination, parent_id)

    if node.parent_id != parent_id:
        source = [n for n in scoped.children(node.parent_id) if n.id != node.id]
        patches.extend(_renumber(source, node.parent_id))

    return tuple(patches)


def plan(dragged_id: str, target_id: str, store: NodeStore) -> PlanResult:
    """
    Compute the patches that drop ``dragged_id`` onto ``target_id``.

    Args:
        dragged_id: Id of the node being moved
        target_id: Id of the node it was released over
        store: Current snapshot; it is not modified

    Returns:
        PlanResult with the patches (destination group first, then the
        renumbered source group), or with the reason the drop is refused
    """
    if dragged_id == target_id:
        return PlanResult.reject(RejectReason.NO_OP)

    dragged = store.get(dragged_id)
    target = store.get(target_id)
    if dragged is None or target is None:
        return PlanResult.reject(RejectReason.UNKNOWN_NODE)
    if dragged.tenant_id != target.tenant_id:
        return PlanResult.reject(RejectReason.CROSS_TENANT)

    scoped = store.for_tenant(dragged.tenant_id)

    if is_descendant(scoped, dragged_id, target_id):
        return PlanResult.reject(RejectReason.CYCLE_WOULD_FORM)

    parent_id = resolve_target_parent(dragged, target)

    # Before the target when it is a sibling, otherwise at the end
    siblings = [n.id for n in scoped.children(parent_id) if n.id != dragged_id]
    position = siblings.index(target_id) if target_id in siblings else None

    patches = _place(scoped, dragged, parent_id, position)
    logger.debug(
        "Planned drop of %s onto %s: parent=%s patches=%d",
        dragged_id,
        target_id,
        parent_id,
        len(patches),
    )
    return PlanResult(patches=patches)


def plan_placement(
    node_id: str,
    parent_id: Optional[str],
    position: Optional[int],
    store: NodeStore,
) -> PlanResult:
    """
    Compute the patches that put a node at an explicit parent and position.

    Used when a category is edited directly instead of dragged. ``position``
    is clamped to the destination group; None appends.
    """
    node = store.get(node_id)
    if node is None:
        return PlanResult.reject(RejectReason.UNKNOWN_NODE)

    scoped = store.for_tenant(node.tenant_id)

    if parent_id is not None:
        parent = store.get(parent_id)
        if parent is None:
            return PlanResult.reject(RejectReason.UNKNOWN_NODE)
        if parent.tenant_id != node.tenant_id:
            return PlanResult.reject(RejectReason.CROSS_TENANT)
        if parent_id == node_id or is_descendant(scoped, node_id, parent_id):
            return PlanResult.reject(RejectReason.CYCLE_WOULD_FORM)

    return PlanResult(patches=_place(scoped, node, parent_id, position))


def plan_removal(node_id: str, store: NodeStore) -> Tuple[NodePatch, ...]:
    """
    Compute the patches that keep the tree dense once a node is deleted.

    The node's children are promoted to root level after the existing
    roots, keeping their relative order; its former sibling group is
    renumbered. Unknown ids produce no patches.
    """
    node = store.get(node_id)
    if node is None:
        return ()

    scoped = store.for_tenant(node.tenant_id)
    roots = [n for n in scoped.roots() if n.id != node_id]
    promoted = scoped.children(node_id)

    patches = _renumber(roots + promoted, None)
    if node.parent_id is not None:
        siblings = [n for n in scoped.children(node.parent_id) if n.id != node_id]
        patches.extend(_renumber(siblings, node.parent_id))
    return tuple(patches)


def plan_repair(store: NodeStore) -> Tuple[NodePatch, ...]:
    """
    Compute the patches that restore the tree invariants of a damaged snapshot.

    Nodes on a parent cycle, or whose parent is missing or belongs to another
    tenant, are detached to root level after the intact roots. Every sibling
    group is then renumbered 0..n-1, keeping the existing relative order.
    """
    patches: List[NodePatch] = []
    cycles = find_cycles(store)

    for tenant_id in sorted(store.tenant_ids):
        scoped = store.for_tenant(tenant_id)
        detached = [
            node
            for node in scoped
            if node.parent_id is not None
            and (node.id in cycles or scoped.get(node.parent_id) is None)
        ]
        detached.sort(key=lambda n: (n.order, n.id))
        detached_ids = {node.id for node in detached}

        groups = dict(scoped.sibling_groups())
        groups.setdefault(None, [])
        for parent_id, group in sorted(groups.items(), key=lambda item: item[0] or ""):
            members = [n for n in group if n.id not in detached_ids]
            if parent_id is None:
                members.extend(detached)
            patches.extend(_renumber(members, parent_id))

    return tuple(patches)

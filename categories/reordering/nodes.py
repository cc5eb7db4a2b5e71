"""
Flat, immutable snapshots of a tenant's category tree.

The tree is kept as an arena of ``CategoryNode`` values keyed by id; parent
and child relationships are derived from ``parent_id`` back-references.
A ``NodeStore`` is never patched in place: ``apply`` returns a new snapshot,
so a reader holding the old one never observes a half-applied reorder.
"""

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
)

from .guard import find_cycles


@dataclass(frozen=True)
class CategoryNode:
    """One category as the reordering engine sees it.

    ``extra`` carries display data (names, translations, color, activation)
    opaquely; it takes no part in equality.
    """

    id: str
    parent_id: Optional[str]
    order: int
    tenant_id: str
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CategoryNode":
        """Build a node from the API payload (``parentId``/``tenantId`` keys)."""
        parent_id = data.get("parentId")
        known = {"id", "parentId", "order", "tenantId"}
        return cls(
            id=str(data["id"]),
            parent_id=str(parent_id) if parent_id is not None else None,
            order=int(data["order"]),
            tenant_id=str(data["tenantId"]),
            extra={key: value for key, value in data.items() if key not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "parentId": self.parent_id,
                "order": self.order,
                "tenantId": self.tenant_id,
            }
        )
        return data


@dataclass(frozen=True)
class NodePatch:
    """A proposed new position for one node, not yet committed."""

    id: str
    parent_id: Optional[str]
    order: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NodePatch":
        parent_id = data.get("parentId")
        return cls(
            id=str(data["id"]),
            parent_id=str(parent_id) if parent_id is not None else None,
            order=int(data["order"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "parentId": self.parent_id, "order": self.order}


def _group_key(node: CategoryNode):
    return (node.order, node.id)


class NodeStore:
    """Read-only snapshot of category nodes with O(1) lookup by id."""

    def __init__(self, nodes: Iterable[CategoryNode] = ()):
        self._nodes: Dict[str, CategoryNode] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate category id in snapshot: {node.id}")
            self._nodes[node.id] = node
        self._groups: Optional[Dict[Optional[str], List[CategoryNode]]] = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[CategoryNode]:
        return iter(self._nodes.values())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __getitem__(self, node_id: str) -> CategoryNode:
        return self._nodes[node_id]

    def __repr__(self) -> str:
        return f"<NodeStore: {len(self)} nodes>"

    def get(self, node_id: Optional[str]) -> Optional[CategoryNode]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    @property
    def tenant_ids(self) -> Set[str]:
        return {node.tenant_id for node in self}

    def for_tenant(self, tenant_id: str) -> "NodeStore":
        """Return the snapshot restricted to one tenant's nodes."""
        if self.tenant_ids <= {tenant_id}:
            return self
        return NodeStore(node for node in self if node.tenant_id == tenant_id)

    def sibling_groups(self) -> Dict[Optional[str], List[CategoryNode]]:
        """Map each parent id (None for roots) to its children sorted by order."""
        if self._groups is None:
            groups: Dict[Optional[str], List[CategoryNode]] = {}
            for node in self:
                groups.setdefault(node.parent_id, []).append(node)
            for members in groups.values():
                members.sort(key=_group_key)
            self._groups = groups
        return self._groups

    def children(self, parent_id: Optional[str]) -> List[CategoryNode]:
        return list(self.sibling_groups().get(parent_id, []))

    def roots(self) -> List[CategoryNode]:
        return self.children(None)

    def apply(self, patches: Iterable[NodePatch]) -> "NodeStore":
        """Return a new snapshot with the patches applied.

        Raises:
            KeyError: if a patch names a node that is not in the snapshot
        """
        updated = dict(self._nodes)
        for patch in patches:
            node = updated[patch.id]
            updated[patch.id] = CategoryNode(
                id=node.id,
                parent_id=patch.parent_id,
                order=patch.order,
                tenant_id=node.tenant_id,
                extra=node.extra,
            )
        return NodeStore(updated.values())

    def check_invariants(self) -> List[str]:
        """Describe every violation of the tree invariants.

        Checks acyclicity, that parents exist in the same tenant, and that
        each sibling group's orders are exactly 0..n-1. An empty list means
        the snapshot is consistent.
        """
        problems = []

        for node_id in sorted(find_cycles(self)):
            problems.append(f"Category {node_id} is part of a parent cycle.")

        for node in sorted(self, key=lambda n: n.id):
            if node.parent_id is None:
                continue
            parent = self.get(node.parent_id)
            if parent is None:
                problems.append(
                    f"Category {node.id} references missing parent {node.parent_id}."
                )
            elif parent.tenant_id != node.tenant_id:
                problems.append(
                    f"Category {node.id} references parent {parent.id} "
                    f"of another tenant."
                )

        groups: Dict[tuple, List[int]] = {}
        for node in self:
            groups.setdefault((node.tenant_id, node.parent_id), []).append(node.order)
        for (tenant_id, parent_id), orders in sorted(
            groups.items(), key=lambda item: (item[0][0], item[0][1] or "")
        ):
            if sorted(orders) != list(range(len(orders))):
                owner = parent_id if parent_id is not None else "root"
                problems.append(
                    f"Sibling group under {owner} (tenant {tenant_id}) has "
                    f"orders {sorted(orders)}, expected 0..{len(orders) - 1}."
                )

        return problems

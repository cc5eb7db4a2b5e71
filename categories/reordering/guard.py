"""
Ancestry checks over a category snapshot.

Both walks are iterative and bounded by the snapshot size, so a corrupted
snapshot containing a parent cycle cannot hang the caller.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Set

if TYPE_CHECKING:
    from .nodes import NodeStore

logger = logging.getLogger(__name__)

_VISITING = 1
_DONE = 2


def is_descendant(
    store: "NodeStore", candidate_ancestor_id: str, node_id: str
) -> bool:
    """
    Check whether ``node_id`` sits somewhere below ``candidate_ancestor_id``.

    Walks ``parent_id`` pointers upward from ``node_id``. Unknown ids, and a
    node compared with itself, are never descendants.

    Args:
        store: Snapshot to walk
        candidate_ancestor_id: Possible ancestor
        node_id: Node whose ancestry is checked

    Returns:
        True if the ancestor is met before reaching a root
    """
    node = store.get(node_id)
    if node is None or candidate_ancestor_id not in store:
        return False

    current: Optional[str] = node.parent_id
    steps = 0
    limit = len(store)

    while current is not None and steps < limit:
        if current == candidate_ancestor_id:
            return True
        parent = store.get(current)
        if parent is None:
            return False
        current = parent.parent_id
        steps += 1

    if current is not None:
        logger.warning(
            "Parent walk from category %s did not reach a root within %d steps; "
            "the snapshot contains a cycle",
            node_id,
            limit,
        )
    return False


def find_cycles(store: "NodeStore") -> Set[str]:
    """Return the ids of every node that lies on a parent cycle."""
    state: Dict[str, int] = {}
    on_cycle: Set[str] = set()

    for start in store:
        path: List[str] = []
        current: Optional[str] = start.id

        while current is not None and current in store and current not in state:
            state[current] = _VISITING
            path.append(current)
            current = store[current].parent_id

        if current is not None and state.get(current) == _VISITING:
            on_cycle.update(path[path.index(current) :])

        for node_id in path:
            state[node_id] = _DONE

    return on_cycle

"""Shared builders for category tests."""

from categories.reordering import CategoryNode, NodeStore


def node(node_id, parent=None, order=0, tenant="t1", **extra):
    return CategoryNode(
        id=node_id, parent_id=parent, order=order, tenant_id=tenant, extra=extra
    )


def store_of(*nodes):
    return NodeStore(nodes)


def sample_store():
    """
    Three roots, R1 with three children, R2 with one and a grandchild.

        R1(0): A(0) B(1) C(2)
        R2(1): D(0): E(0)
        R3(2)
    """
    return store_of(
        node("R1", None, 0),
        node("R2", None, 1),
        node("R3", None, 2),
        node("A", "R1", 0),
        node("B", "R1", 1),
        node("C", "R1", 2),
        node("D", "R2", 0),
        node("E", "D", 0),
    )


def as_tuples(patches):
    return [(patch.id, patch.parent_id, patch.order) for patch in patches]

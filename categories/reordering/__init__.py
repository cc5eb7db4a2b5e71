"""
Hierarchical category reordering engine.

Pure pieces (snapshot, ancestry guard, planner) have no Django dependency
beyond this package; the drag session lives in ``categories.models`` and the
gateways talk to the service layer or the REST API.
"""

from .guard import find_cycles, is_descendant
from .nodes import CategoryNode, NodePatch, NodeStore
from .planner import (
    PlanResult,
    RejectReason,
    plan,
    plan_placement,
    plan_removal,
    plan_repair,
)

__all__ = [
    "CategoryNode",
    "NodePatch",
    "NodeStore",
    "PlanResult",
    "RejectReason",
    "find_cycles",
    "is_descendant",
    "plan",
    "plan_placement",
    "plan_removal",
    "plan_repair",
]

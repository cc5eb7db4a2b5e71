"""
Typed failures raised while committing a reorder.

Every failure carries a stable ``code`` (used on the wire by the REST API and
mapped back by ``HttpCommitGateway``) and the ``ids`` it concerns, so callers
can tell a stale snapshot from a transport problem without parsing messages.
Structural rejections (dropping a node on itself or on a descendant) are not
exceptions; see ``categories.reordering.planner.RejectReason``.
"""

from typing import Iterable, List, Optional


class ReorderError(Exception):
    """Base class for reorder commit failures."""

    code = "reorder_failed"
    default_message = "Failed to reorder categories."

    def __init__(
        self, message: Optional[str] = None, ids: Optional[Iterable[str]] = None
    ):
        self.ids: List[str] = sorted(str(i) for i in ids) if ids else []
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, "ids": self.ids}


class NodeNotFound(ReorderError):
    """One or more patched categories do not exist."""

    code = "node_not_found"
    default_message = "Some categories were not found."


class ParentNotFound(ReorderError):
    """One or more parent references point to missing categories."""

    code = "parent_not_found"
    default_message = "Some parent categories were not found."


class CrossTenantReference(ReorderError):
    """A patch or its parent belongs to a different tenant."""

    code = "cross_tenant_reference"
    default_message = "Some categories don't belong to this tenant."


class InvalidPatchList(ReorderError):
    """The patch list itself is malformed (duplicates, bad values)."""

    code = "invalid_patch_list"
    default_message = "The reorder request is invalid."


class InvariantViolation(ReorderError):
    """Applying the patches would leave a cycle or a gapped sibling group."""

    code = "invariant_violation"
    default_message = "The reorder would leave the category tree inconsistent."

    def __init__(
        self,
        message: Optional[str] = None,
        ids: Optional[Iterable[str]] = None,
        problems: Optional[List[str]] = None,
    ):
        super().__init__(message, ids)
        self.problems = problems or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["problems"] = self.problems
        return data


class GatewayTransportError(ReorderError):
    """The commit endpoint could not be reached or answered unexpectedly."""

    code = "transport_error"
    default_message = "Could not reach the category service."


ERROR_CLASSES = {
    cls.code: cls
    for cls in (
        NodeNotFound,
        ParentNotFound,
        CrossTenantReference,
        InvalidPatchList,
        InvariantViolation,
        GatewayTransportError,
    )
}

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from django.db import models
from django_fsm import FSMField, transition  # type: ignore[import-untyped]

from categories.exceptions import ReorderError
from categories.reordering import CategoryNode, NodePatch, NodeStore, RejectReason, plan

if TYPE_CHECKING:
    from categories.reordering.gateway import CommitGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DropOutcome:
    """Result of ``DragSession.drop``."""

    COMMITTED = "committed"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"
    FAILED = "failed"
    CANCELLED = "cancelled"

    status: str
    patches: Tuple[NodePatch, ...] = ()
    reason: Optional[RejectReason] = None
    error: Optional[ReorderError] = None

    @property
    def ok(self) -> bool:
        return self.status in (self.COMMITTED, self.UNCHANGED)

    @property
    def message(self) -> str:
        if self.reason is not None:
            return self.reason.message
        if self.error is not None:
            return self.error.message
        return ""


class DragSession(models.Model):
    """
    One in-progress drag gesture over a tenant's category tree.

    Never stored: the model exists so the gesture's lifecycle is a django-fsm
    state machine. Calls outside the allowed transitions raise
    ``django_fsm.TransitionNotAllowed``, which also stops a second drag from
    starting while one is active.

    States:
        idle -> dragging (start)
        dragging/hovering -> hovering (hover)
        hovering -> dragging (leave)
        dragging/hovering -> idle (cancel)
        hovering -> committing (begin_commit, via drop)
        committing -> idle (finish, via drop)

    The session owns the current NodeStore snapshot and the CommitGateway
    used to persist drops; pass them as ``store=`` and ``gateway=``.
    """

    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"
    COMMITTING = "committing"

    STATE_CHOICES = [
        (IDLE, "Idle"),
        (DRAGGING, "Dragging"),
        (HOVERING, "Hovering over target"),
        (COMMITTING, "Committing"),
    ]

    state: FSMField = FSMField(
        max_length=20,
        choices=STATE_CHOICES,
        default=IDLE,
        protected=True,
    )
    tenant_id = models.CharField(max_length=64, blank=True, default="")
    dragged_id = models.CharField(max_length=64, blank=True, default="")
    target_id = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        managed = False
        db_table = "categories_drag_session"

    def __init__(self, *args, **kwargs):
        store = kwargs.pop("store", None)
        gateway = kwargs.pop("gateway", None)
        super().__init__(*args, **kwargs)
        self.store: NodeStore = store if store is not None else NodeStore()
        self.gateway: Optional["CommitGateway"] = gateway

    def __str__(self) -> str:
        return f"DragSession({self.state}, dragged={self.dragged_id or '-'})"

    def save(self, *args, **kwargs):
        raise NotImplementedError("Drag sessions are not persisted.")

    # FSM transitions

    @transition(field=state, source=IDLE, target=DRAGGING)
    def start(self, node_id: str) -> None:
        """Pick up a node."""
        self.dragged_id = str(node_id)
        self.target_id = ""

    @transition(field=state, source=[DRAGGING, HOVERING], target=HOVERING)
    def hover(self, node_id: str) -> None:
        """Move the pointer over a potential drop target."""
        self.target_id = str(node_id)

    @transition(field=state, source=HOVERING, target=DRAGGING)
    def leave(self) -> None:
        self.target_id = ""

    @transition(field=state, source=[DRAGGING, HOVERING], target=IDLE)
    def cancel(self) -> None:
        """Abandon the gesture without changing anything."""
        self._clear()

    @transition(field=state, source=HOVERING, target=COMMITTING)
    def begin_commit(self) -> None:
        pass

    @transition(field=state, source=COMMITTING, target=IDLE)
    def finish(self) -> None:
        self._clear()

    def _clear(self) -> None:
        self.dragged_id = ""
        self.target_id = ""

    @property
    def is_active(self) -> bool:
        return self.state != self.IDLE

    # Operations

    def replace_store(self, nodes: Iterable[CategoryNode]) -> None:
        self.store = NodeStore(nodes)

    def _resolve_tenant(self) -> str:
        if self.tenant_id:
            return self.tenant_id
        dragged = self.store.get(self.dragged_id)
        return dragged.tenant_id if dragged is not None else ""

    async def drop(self) -> DropOutcome:
        """
        Release the dragged node over the current target.

        Without a target the gesture is cancelled. Otherwise the drop is
        planned against the session's snapshot; rejected or empty plans end
        without contacting the gateway. Accepted plans are committed and, on
        success, the snapshot is replaced by the gateway's refreshed list.
        A failed commit leaves the snapshot untouched. The session is idle
        again whatever the outcome.

        Raises:
            TransitionNotAllowed: If no drag is in progress
        """
        if self.state == self.DRAGGING:
            self.cancel()
            return DropOutcome(DropOutcome.CANCELLED)

        self.begin_commit()
        try:
            result = plan(self.dragged_id, self.target_id, self.store)
            if not result.accepted:
                logger.debug(
                    "Drop of %s onto %s rejected: %s",
                    self.dragged_id,
                    self.target_id,
                    result.rejected.value,
                )
                return DropOutcome(DropOutcome.REJECTED, reason=result.rejected)
            if result.is_empty:
                return DropOutcome(DropOutcome.UNCHANGED)
            if self.gateway is None:
                raise RuntimeError("DragSession has no commit gateway.")

            try:
                nodes = await self.gateway.reorder(
                    self._resolve_tenant(), list(result.patches)
                )
            except ReorderError as exc:
                logger.warning(
                    "Committing drop of %s onto %s failed: %s (%s)",
                    self.dragged_id,
                    self.target_id,
                    exc.message,
                    exc.code,
                )
                return DropOutcome(
                    DropOutcome.FAILED, patches=result.patches, error=exc
                )

            self.replace_store(nodes)
            return DropOutcome(DropOutcome.COMMITTED, patches=result.patches)
        finally:
            self.finish()

    @transition(field=state, source=IDLE, target=IDLE)
    def _check_idle(self) -> None:
        pass

    async def refresh(self, tenant_id: Optional[str] = None) -> None:
        """
        Reload the snapshot from the gateway.

        Raises:
            TransitionNotAllowed: If a drag is in progress
        """
        self._check_idle()
        if self.gateway is None:
            raise RuntimeError("DragSession has no commit gateway.")
        tenant = str(tenant_id) if tenant_id else self.tenant_id
        self.replace_store(await self.gateway.list_nodes(tenant))
        if tenant_id:
            self.tenant_id = tenant

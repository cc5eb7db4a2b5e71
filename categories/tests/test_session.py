"""Tests for the DragSession state machine."""

import asyncio

from django.test import SimpleTestCase
from django_fsm import TransitionNotAllowed  # type: ignore[import-untyped]

from categories.exceptions import GatewayTransportError, NodeNotFound
from categories.models import DragSession, DropOutcome
from categories.reordering import RejectReason
from categories.reordering.gateway import CommitGateway

from .helpers import as_tuples, node, store_of


class FakeGateway(CommitGateway):
    """In-memory gateway that applies patches to a server-side snapshot."""

    def __init__(self, store, error=None):
        self.server = store
        self.error = error
        self.reorder_calls = []
        self.list_calls = []

    async def reorder(self, tenant_id, patches):
        self.reorder_calls.append((tenant_id, list(patches)))
        if self.error is not None:
            raise self.error
        self.server = self.server.apply(patches)
        return list(self.server)

    async def list_nodes(self, tenant_id):
        self.list_calls.append(tenant_id)
        return list(self.server)


class BlockingGateway(FakeGateway):
    """FakeGateway whose commits wait until released."""

    def __init__(self, store):
        super().__init__(store)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def reorder(self, tenant_id, patches):
        self.entered.set()
        await self.release.wait()
        return await super().reorder(tenant_id, patches)

def roots_store():
    return store_of(node("R1", None, 0), node("R2", None, 1), node("R3", None, 2))


class DragSessionTransitionTest(SimpleTestCase):
    """Test the allowed and refused transitions."""

    def setUp(self):
        self.session = DragSession(store=roots_store(), gateway=FakeGateway(roots_store()))

    def test_starts_idle(self):
        """A new session is idle."""
        self.assertEqual(self.session.state, DragSession.IDLE)
        self.assertFalse(self.session.is_active)

    def test_start_hover_leave_cancel(self):
        """The pointer can enter and leave targets before cancelling."""
        self.session.start("R1")
        self.assertEqual(self.session.state, DragSession.DRAGGING)
        self.assertEqual(self.session.dragged_id, "R1")

        self.session.hover("R2")
        self.assertEqual(self.session.state, DragSession.HOVERING)
        self.assertEqual(self.session.target_id, "R2")

        self.session.hover("R3")
        self.assertEqual(self.session.target_id, "R3")

        self.session.leave()
        self.assertEqual(self.session.state, DragSession.DRAGGING)
        self.assertEqual(self.session.target_id, "")

        self.session.cancel()
        self.assertEqual(self.session.state, DragSession.IDLE)
        self.assertEqual(self.session.dragged_id, "")

    def test_second_drag_refused(self):
        """A drag cannot start while another one is active."""
        self.session.start("R1")

        with self.assertRaises(TransitionNotAllowed):
            self.session.start("R2")

    def test_hover_requires_drag(self):
        """Hovering without a dragged node is refused."""
        with self.assertRaises(TransitionNotAllowed):
            self.session.hover("R1")

    def test_leave_requires_target(self):
        """Leaving is only possible while over a target."""
        self.session.start("R1")

        with self.assertRaises(TransitionNotAllowed):
            self.session.leave()

    def test_cancel_requires_drag(self):
        """An idle session has nothing to cancel."""
        with self.assertRaises(TransitionNotAllowed):
            self.session.cancel()

    def test_state_cannot_be_assigned(self):
        """The state only changes through transitions."""
        with self.assertRaises(AttributeError):
            self.session.state = DragSession.COMMITTING

    def test_not_persisted(self):
        """Sessions live in memory only."""
        self.assertFalse(DragSession._meta.managed)
        with self.assertRaises(NotImplementedError):
            self.session.save()


class DragSessionDropTest(SimpleTestCase):
    """Test drop() against a fake gateway."""

    def setUp(self):
        self.gateway = FakeGateway(roots_store())
        self.session = DragSession(
            store=roots_store(), gateway=self.gateway, tenant_id="t1"
        )

    async def test_drop_commits_and_replaces_store(self):
        """An accepted drop is committed and the snapshot swapped."""
        self.session.start("R3")
        self.session.hover("R1")

        outcome = await self.session.drop()

        self.assertEqual(outcome.status, DropOutcome.COMMITTED)
        self.assertTrue(outcome.ok)
        self.assertEqual(as_tuples(outcome.patches), [("R3", "R1", 0)])
        self.assertEqual(self.gateway.reorder_calls[0][0], "t1")
        self.assertEqual(self.session.store["R3"].parent_id, "R1")
        self.assertEqual(self.session.state, DragSession.IDLE)

    async def test_drop_without_target_cancels(self):
        """Releasing outside any target changes nothing."""
        self.session.start("R3")

        outcome = await self.session.drop()

        self.assertEqual(outcome.status, DropOutcome.CANCELLED)
        self.assertEqual(self.gateway.reorder_calls, [])
        self.assertEqual(self.session.state, DragSession.IDLE)

    async def test_drop_on_itself_is_rejected_locally(self):
        """A no-op never reaches the gateway."""
        self.session.start("R1")
        self.session.hover("R1")

        outcome = await self.session.drop()

        self.assertEqual(outcome.status, DropOutcome.REJECTED)
        self.assertEqual(outcome.reason, RejectReason.NO_OP)
        self.assertEqual(outcome.message, RejectReason.NO_OP.message)
        self.assertEqual(self.gateway.reorder_calls, [])
        self.assertEqual(self.session.state, DragSession.IDLE)

    async def test_drop_on_descendant_is_rejected_locally(self):
        """A cycle is refused without contacting the gateway."""
        store = store_of(node("A", None, 0), node("B", "A", 0))
        self.session.store = store
        self.session.start("A")
        self.session.hover("B")

        outcome = await self.session.drop()

        self.assertEqual(outcome.reason, RejectReason.CYCLE_WOULD_FORM)
        self.assertIs(self.session.store, store)
        self.assertEqual(self.gateway.reorder_calls, [])

    async def test_settled_drop_is_unchanged(self):
        """A drop that moves nothing skips the gateway."""
        self.session.store = store_of(node("R1", None, 0), node("C1", "R1", 0))
        self.session.start("C1")
        self.session.hover("R1")

        outcome = await self.session.drop()

        self.assertEqual(outcome.status, DropOutcome.UNCHANGED)
        self.assertTrue(outcome.ok)
        self.assertEqual(self.gateway.reorder_calls, [])

    async def test_stale_node_keeps_store_then_refresh_repopulates(self):
        """A NodeNotFound commit leaves the snapshot; refresh reloads it."""
        self.gateway.error = NodeNotFound(ids=["R3"])
        before = self.session.store
        self.session.start("R3")
        self.session.hover("R1")

        outcome = await self.session.drop()

        self.assertEqual(outcome.status, DropOutcome.FAILED)
        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.error, NodeNotFound)
        self.assertEqual(self.session.state, DragSession.IDLE)
        self.assertIs(self.session.store, before)

        self.gateway.server = store_of(node("R1", None, 0), node("R2", None, 1))
        await self.session.refresh()

        self.assertEqual(self.gateway.list_calls, ["t1"])
        self.assertNotIn("R3", self.session.store)
        self.assertEqual(len(self.session.store), 2)

    async def test_transport_error_is_reported(self):
        """Transport failures are outcomes, not exceptions."""
        self.gateway.error = GatewayTransportError("down")
        self.session.start("R3")
        self.session.hover("R1")

        outcome = await self.session.drop()

        self.assertEqual(outcome.status, DropOutcome.FAILED)
        self.assertEqual(outcome.message, "down")

    async def test_tenant_taken_from_dragged_node(self):
        """Without an explicit tenant the dragged node's tenant is used."""
        session = DragSession(store=roots_store(), gateway=self.gateway)
        session.start("R3")
        session.hover("R1")

        await session.drop()

        self.assertEqual(self.gateway.reorder_calls[0][0], "t1")

    async def test_drop_requires_active_drag(self):
        """drop() on an idle session is refused."""
        with self.assertRaises(TransitionNotAllowed):
            await self.session.drop()

    async def test_refresh_refused_during_drag(self):
        """The snapshot cannot be swapped mid-gesture."""
        self.session.start("R1")

        with self.assertRaises(TransitionNotAllowed):
            await self.session.refresh()

    async def test_refresh_with_tenant_switches_scope(self):
        """Refreshing with a tenant id remembers it for later commits."""
        await self.session.refresh("t2")

        self.assertEqual(self.session.tenant_id, "t2")
        self.assertEqual(self.gateway.list_calls, ["t2"])


class DragSessionCommitInFlightTest(SimpleTestCase):
    """Test the session while a commit is awaiting the gateway."""

    async def test_drag_refused_while_committing(self):
        """No new drag can start until the pending commit finishes."""
        gateway = BlockingGateway(roots_store())
        session = DragSession(store=roots_store(), gateway=gateway)
        session.start("R3")
        session.hover("R1")

        task = asyncio.ensure_future(session.drop())
        await gateway.entered.wait()

        self.assertEqual(session.state, DragSession.COMMITTING)
        with self.assertRaises(TransitionNotAllowed):
            session.start("R2")
        with self.assertRaises(TransitionNotAllowed):
            session.cancel()

        gateway.release.set()
        outcome = await task

        self.assertEqual(outcome.status, DropOutcome.COMMITTED)
        self.assertEqual(session.state, DragSession.IDLE)
        self.assertEqual(session.store["R3"].parent_id, "R1")
        self.assertEqual(session.dragged_id, "")

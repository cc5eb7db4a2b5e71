"""Tests for the commit gateways."""

from unittest.mock import MagicMock, patch

import requests
from channels.db import database_sync_to_async
from django.db import OperationalError
from django.test import SimpleTestCase, TransactionTestCase

from categories.exceptions import (
    CrossTenantReference,
    GatewayTransportError,
    InvalidPatchList,
    InvariantViolation,
    NodeNotFound,
)
from categories.models import Category, DragSession, DropOutcome
from categories.reordering import NodePatch, NodeStore
from categories.reordering.gateway import HttpCommitGateway, ServiceCommitGateway
from categories.services import CategoryService
from tenants.models import Tenant


class ServiceCommitGatewayTest(TransactionTestCase):
    """Test the in-process gateway against the database."""

    def setUp(self):
        self.tenant = Tenant.objects.create(name="Gateway Shop")
        self.other = Tenant.objects.create(name="Elsewhere")
        self.r1 = CategoryService.create_category(self.tenant, "R1")
        self.r2 = CategoryService.create_category(self.tenant, "R2")
        self.foreign = CategoryService.create_category(self.other, "Foreign")
        self.gateway = ServiceCommitGateway()

    async def test_list_nodes(self):
        """Lists the tenant's nodes only."""
        nodes = await self.gateway.list_nodes(str(self.tenant.pk))

        self.assertEqual({n.id for n in nodes}, {str(self.r1.pk), str(self.r2.pk)})

    async def test_reorder_commits(self):
        """Patches are written and the fresh list returned."""
        nodes = await self.gateway.reorder(
            str(self.tenant.pk), [NodePatch(str(self.r2.pk), str(self.r1.pk), 0)]
        )

        moved = next(n for n in nodes if n.id == str(self.r2.pk))
        self.assertEqual(moved.parent_id, str(self.r1.pk))
        category = await database_sync_to_async(Category.objects.get)(pk=self.r2.pk)
        self.assertEqual(category.parent_id, self.r1.pk)

    async def test_reorder_raises_typed_errors(self):
        """Service exceptions propagate unchanged."""
        with self.assertRaises(CrossTenantReference):
            await self.gateway.reorder(
                str(self.tenant.pk), [NodePatch(str(self.foreign.pk), None, 2)]
            )

    async def test_session_round_trip(self):
        """A drag session commits through the database and reloads."""
        session = DragSession(gateway=self.gateway, tenant_id=str(self.tenant.pk))
        await session.refresh()
        session.start(str(self.r2.pk))
        session.hover(str(self.r1.pk))

        outcome = await session.drop()

        self.assertEqual(outcome.status, DropOutcome.COMMITTED)
        self.assertEqual(session.store[str(self.r2.pk)].parent_id, str(self.r1.pk))
        self.assertEqual(session.store.check_invariants(), [])

    async def test_session_with_stale_snapshot(self):
        """A node deleted elsewhere fails the commit and keeps the snapshot."""
        session = DragSession(gateway=self.gateway, tenant_id=str(self.tenant.pk))
        r2_id = str(self.r2.pk)
        await session.refresh()
        await database_sync_to_async(CategoryService.delete_category)(self.r2)
        session.start(r2_id)
        session.hover(str(self.r1.pk))

        outcome = await session.drop()

        self.assertEqual(outcome.status, DropOutcome.FAILED)
        self.assertIsInstance(outcome.error, NodeNotFound)
        self.assertEqual(outcome.error.ids, [r2_id])
        self.assertIn(r2_id, session.store)

        await session.refresh()
        self.assertNotIn(r2_id, session.store)

    async def test_reorder_database_error_is_typed(self):
        """A lost database connection surfaces as GatewayTransportError."""
        with patch.object(
            CategoryService, "reorder", side_effect=OperationalError("db down")
        ):
            with self.assertRaises(GatewayTransportError) as ctx:
                await self.gateway.reorder(
                    str(self.tenant.pk), [NodePatch(str(self.r2.pk), None, 0)]
                )

        self.assertIsInstance(ctx.exception.__cause__, OperationalError)

    async def test_list_nodes_database_error_is_typed(self):
        """Listing failures are typed as well."""
        with patch.object(
            CategoryService, "list_nodes", side_effect=OperationalError("db down")
        ):
            with self.assertRaises(GatewayTransportError):
                await self.gateway.list_nodes(str(self.tenant.pk))

    async def test_session_drop_with_database_down(self):
        """A database failure during commit fails the drop and keeps the snapshot."""
        session = DragSession(gateway=self.gateway, tenant_id=str(self.tenant.pk))
        await session.refresh()
        before = session.store[str(self.r2.pk)]
        session.start(str(self.r2.pk))
        session.hover(str(self.r1.pk))

        with patch.object(
            CategoryService, "reorder", side_effect=OperationalError("db down")
        ):
            outcome = await session.drop()

        self.assertEqual(outcome.status, DropOutcome.FAILED)
        self.assertIsInstance(outcome.error, GatewayTransportError)
        self.assertEqual(session.store[str(self.r2.pk)], before)
        self.assertEqual(session.state, DragSession.IDLE)


def make_response(status_code=200, payload=None, json_error=False):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    if json_error:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = payload
    return response


NODE_PAYLOAD = [
    {"id": "a", "parentId": None, "order": 0, "tenantId": "1", "name": "A"},
    {"id": "b", "parentId": "a", "order": 0, "tenantId": "1", "name": "B"},
]


class HttpCommitGatewayTest(SimpleTestCase):
    """Test the REST gateway with a mocked requests session."""

    def setUp(self):
        self.session = MagicMock(spec=requests.Session)
        self.session.headers = {}
        self.gateway = HttpCommitGateway(
            "https://cms.example.com/api/", token="secret", session=self.session
        )

    def test_headers(self):
        """Token auth and JSON headers are set on the session."""
        self.assertEqual(self.session.headers["Authorization"], "Token secret")
        self.assertEqual(self.session.headers["Accept"], "application/json")

    async def test_reorder_sends_patches(self):
        """The patch list is PUT in the endpoint's wire format."""
        self.session.request.return_value = make_response(200, NODE_PAYLOAD)

        nodes = await self.gateway.reorder("1", [NodePatch("b", "a", 0)])

        method, url = self.session.request.call_args.args
        self.assertEqual(method, "put")
        self.assertEqual(url, "https://cms.example.com/api/categories/reorder/")
        self.assertEqual(
            self.session.request.call_args.kwargs["json"],
            {"tenantId": "1", "updates": [{"id": "b", "parentId": "a", "order": 0}]},
        )
        self.assertEqual([n.id for n in nodes], ["a", "b"])
        self.assertEqual(nodes[1].parent_id, "a")
        self.assertEqual(nodes[0].extra["name"], "A")

    async def test_list_nodes(self):
        """Listing GETs the collection filtered by tenant."""
        self.session.request.return_value = make_response(200, NODE_PAYLOAD)

        nodes = await self.gateway.list_nodes("1")

        self.assertEqual(self.session.request.call_args.kwargs["params"], {"tenant": "1"})
        self.assertEqual(NodeStore(nodes).check_invariants(), [])

    async def test_error_codes_mapped(self):
        """400 payloads are raised as the matching typed error."""
        cases = [
            ("node_not_found", NodeNotFound),
            ("cross_tenant_reference", CrossTenantReference),
            ("invariant_violation", InvariantViolation),
        ]
        for code, error_class in cases:
            with self.subTest(code=code):
                self.session.request.return_value = make_response(
                    400, {"detail": "nope", "code": code, "ids": ["x"]}
                )
                with self.assertRaises(error_class) as cm:
                    await self.gateway.reorder("1", [NodePatch("x", None, 0)])
                self.assertEqual(cm.exception.ids, ["x"])
                self.assertEqual(cm.exception.message, "nope")

    async def test_validation_error_without_code(self):
        """A 400 without a known code is an invalid patch list."""
        self.session.request.return_value = make_response(
            400, {"updates": ["Too many."]}
        )

        with self.assertRaises(InvalidPatchList):
            await self.gateway.reorder("1", [])

    async def test_missing_endpoint(self):
        """A 404 means the endpoint or tenant is unreachable."""
        self.session.request.return_value = make_response(404, {"detail": "x"})

        with self.assertRaises(GatewayTransportError):
            await self.gateway.reorder("1", [])

    async def test_server_error(self):
        """5xx responses are transport errors."""
        self.session.request.return_value = make_response(502, None)

        with self.assertRaises(GatewayTransportError):
            await self.gateway.list_nodes("1")

    async def test_connection_error(self):
        """Network failures are transport errors."""
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(GatewayTransportError):
            await self.gateway.list_nodes("1")

    async def test_invalid_json(self):
        """An unparseable body is a transport error."""
        self.session.request.return_value = make_response(200, json_error=True)

        with self.assertRaises(GatewayTransportError):
            await self.gateway.list_nodes("1")

    async def test_unexpected_shape(self):
        """A body that is not a node list is a transport error."""
        self.session.request.return_value = make_response(200, {"results": []})

        with self.assertRaises(GatewayTransportError):
            await self.gateway.list_nodes("1")

        self.session.request.return_value = make_response(200, [{"id": "a"}])

        with self.assertRaises(GatewayTransportError):
            await self.gateway.list_nodes("1")

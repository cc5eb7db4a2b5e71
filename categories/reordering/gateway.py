"""
Commit gateways: where a planned reorder is validated and persisted.

A gateway takes a tenant id and a patch list, applies it atomically and
returns the tenant's refreshed node list, or raises one of the typed
``categories.exceptions.ReorderError`` subclasses. Two implementations:

- ServiceCommitGateway calls ``CategoryService`` in-process.
- HttpCommitGateway calls the REST endpoint of a remote deployment.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from asgiref.sync import sync_to_async
from channels.db import database_sync_to_async
from django.db import DatabaseError

from categories.exceptions import (
    ERROR_CLASSES,
    GatewayTransportError,
    InvalidPatchList,
)
from categories.services import CategoryService

from .nodes import CategoryNode, NodePatch

logger = logging.getLogger(__name__)


class CommitGateway:
    """Base class for commit gateways. Override both coroutines."""

    async def reorder(
        self, tenant_id: str, patches: Sequence[NodePatch]
    ) -> List[CategoryNode]:
        """Atomically apply the patches and return the refreshed node list."""
        raise NotImplementedError

    async def list_nodes(self, tenant_id: str) -> List[CategoryNode]:
        """Return every node of the tenant."""
        raise NotImplementedError


class ServiceCommitGateway(CommitGateway):
    """Gateway backed by the local database through CategoryService."""

    def __init__(self, user: Optional[Any] = None):
        self.user = user

    async def reorder(
        self, tenant_id: str, patches: Sequence[NodePatch]
    ) -> List[CategoryNode]:
        try:
            return await database_sync_to_async(CategoryService.reorder)(
                tenant_id, list(patches), user=self.user
            )
        except DatabaseError as exc:
            logger.warning("Category reorder in tenant %s failed: %s", tenant_id, exc)
            raise GatewayTransportError(f"Database error during reorder: {exc}") from exc

    async def list_nodes(self, tenant_id: str) -> List[CategoryNode]:
        try:
            return await database_sync_to_async(CategoryService.list_nodes)(tenant_id)
        except DatabaseError as exc:
            logger.warning("Category listing for tenant %s failed: %s", tenant_id, exc)
            raise GatewayTransportError(f"Database error during listing: {exc}") from exc


class HttpCommitGateway(CommitGateway):
    """
    Gateway that talks to the category REST API.

    Error payloads carrying a known ``code`` are raised as the matching
    ReorderError subclass; anything else (connection errors, a missing
    endpoint, malformed bodies) becomes GatewayTransportError.
    """

    REORDER_PATH = "/categories/reorder/"
    LIST_PATH = "/categories/"

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )
        if token:
            self.session.headers["Authorization"] = f"Token {token}"

    async def reorder(
        self, tenant_id: str, patches: Sequence[NodePatch]
    ) -> List[CategoryNode]:
        return await sync_to_async(self._reorder, thread_sensitive=False)(
            tenant_id, patches
        )

    async def list_nodes(self, tenant_id: str) -> List[CategoryNode]:
        return await sync_to_async(self._list_nodes, thread_sensitive=False)(
            tenant_id
        )

    def _reorder(
        self, tenant_id: str, patches: Sequence[NodePatch]
    ) -> List[CategoryNode]:
        payload = {
            "tenantId": tenant_id,
            "updates": [patch.to_dict() for patch in patches],
        }
        data = self._request("put", self.REORDER_PATH, json=payload)
        return self._parse_nodes(data)

    def _list_nodes(self, tenant_id: str) -> List[CategoryNode]:
        data = self._request("get", self.LIST_PATH, params={"tenant": tenant_id})
        return self._parse_nodes(data)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Category request %s %s failed: %s", method.upper(), url, exc)
            raise GatewayTransportError(f"Request to {url} failed: {exc}") from exc

        if response.status_code == 400:
            self._raise_for_error_payload(response)
        if response.status_code == 404:
            raise GatewayTransportError(f"Endpoint not found: {url}")
        if not response.ok:
            raise GatewayTransportError(
                f"{method.upper()} {url} returned HTTP {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise GatewayTransportError(f"Invalid JSON from {url}") from exc

    @staticmethod
    def _raise_for_error_payload(response: requests.Response) -> None:
        try:
            payload: Dict[str, Any] = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        error_class = ERROR_CLASSES.get(payload.get("code", ""), InvalidPatchList)
        detail = payload.get("detail")
        raise error_class(
            detail if isinstance(detail, str) else None, payload.get("ids") or []
        )

    @staticmethod
    def _parse_nodes(data: Any) -> List[CategoryNode]:
        if not isinstance(data, list):
            raise GatewayTransportError("Expected a list of categories.")
        try:
            return [CategoryNode.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise GatewayTransportError("Malformed category payload.") from exc

"""Metabase REST client."""

from __future__ import annotations

from typing import Any

import httpx

from metabase2git.exceptions import AuthError, TransportError
from metabase2git.http_utils import build_client, request_json
from metabase2git.utils.logging_config import get_logger

logger = get_logger(__name__)

SESSION_HEADER = "X-Metabase-Session"


class MetabaseClient:
    """Read-only access to the collection tree and cards of one Metabase instance.

    Every method except :meth:`authenticate` requires a session, so call
    :meth:`authenticate` first. Fetches return the raw entry payloads; the
    tree builder and resolver validate them one by one. Failures raise
    ``TransportError``; callers decide whether a failure is fatal.

    Usage::

        async with MetabaseClient(url, user, password) as client:
            await client.authenticate()
            roots = await client.fetch_collection_tree()
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._username = username
        self._password = password
        self._http = http_client or build_client(self.base_url)
        self._owns_http = http_client is None
        self.token: str | None = None

    async def __aenter__(self) -> "MetabaseClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def authenticate(self) -> str:
        """Exchange credentials for a session token.

        Returns:
            The session token, also kept on the client for later requests.

        Raises:
            AuthError: If the exchange fails or returns no token.
        """
        logger.info("visiting /api/session")
        try:
            payload = await request_json(
                self._http,
                "POST",
                "/api/session",
                json={"username": self._username, "password": self._password},
            )
        except TransportError as exc:
            raise AuthError(f"Could not open a Metabase session: {exc}") from exc

        token = payload.get("id") if isinstance(payload, dict) else None
        if not token:
            raise AuthError("Metabase session response did not contain a token")
        self.token = str(token)
        return self.token

    async def fetch_collection_tree(self) -> list[dict[str, Any]]:
        """Fetch the top-level collections.

        Children are not attached; the tree builder expands each root.
        """
        logger.info("visiting /api/collection/tree?tree=true")
        payload = await self._get("/api/collection/tree", params={"tree": "true"})
        if not isinstance(payload, list):
            raise TransportError("Unexpected /api/collection/tree response shape")
        return payload

    async def fetch_collection_items(self, collection_id: Any) -> list[dict[str, Any]]:
        """Fetch the direct children of one collection, in remote order."""
        path = f"/api/collection/{collection_id}/items"
        logger.info("visiting %s", path)
        payload = await self._get(path)
        entries = payload.get("data") if isinstance(payload, dict) else payload
        if not isinstance(entries, list):
            raise TransportError(f"Unexpected {path} response shape")
        return entries

    async def fetch_cards(self) -> list[dict[str, Any]]:
        """Fetch every card visible to the session."""
        logger.info("visiting /api/card")
        payload = await self._get("/api/card/")
        if not isinstance(payload, list):
            raise TransportError("Unexpected /api/card response shape")
        return payload

    async def compile_query(self, dataset_query: dict[str, Any]) -> str:
        """Compile a query-builder definition to native SQL.

        Raises:
            TransportError: If the request fails or the response has no query.
        """
        logger.info("visiting /api/dataset/native to build sql from query builder")
        payload = await request_json(
            self._http,
            "POST",
            "/api/dataset/native",
            json=dataset_query,
            headers=self._session_headers(),
        )
        query = payload.get("query") if isinstance(payload, dict) else None
        if not isinstance(query, str):
            raise TransportError("/api/dataset/native response did not contain a query")
        return query

    async def _get(self, path: str, *, params: dict[str, str] | None = None) -> Any:
        return await request_json(self._http, "GET", path, params=params, headers=self._session_headers())

    def _session_headers(self) -> dict[str, str]:
        if self.token is None:
            raise AuthError("Not authenticated; call authenticate() first")
        return {SESSION_HEADER: self.token}

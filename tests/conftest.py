"""Test setup for metabase2git."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from metabase2git.exceptions import AuthError, TransportError  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for pytest.

    This allows running integration tests selectively:
        pytest -m integration       # run only integration tests
        pytest -m "not integration" # skip integration tests
    """
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (make real network calls)",
    )


class FakeMetabase:
    """In-memory stand-in for MetabaseClient.

    Fetches return copies of the stored payloads, as raw as the real client
    returns them.
    """

    def __init__(
        self,
        *,
        roots: list[dict[str, Any]] | None = None,
        items: dict[Any, list[Any]] | None = None,
        cards: list[Any] | None = None,
        fail_tree: bool = False,
        fail_cards: bool = False,
        compiled: dict[str, str] | None = None,
        failing_collections: set[Any] | None = None,
        fail_auth: bool = False,
    ) -> None:
        self.roots = None if fail_tree else (roots or [])
        self.items = items or {}
        self.cards = None if fail_cards else (cards or [])
        self.compiled = compiled or {}
        self.failing_collections = failing_collections or set()
        self.fail_auth = fail_auth
        self.expanded: list[Any] = []
        self.compile_calls: list[dict[str, Any]] = []

    async def __aenter__(self) -> "FakeMetabase":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def authenticate(self) -> str:
        if self.fail_auth:
            raise AuthError("bad credentials")
        return "token"

    async def fetch_collection_tree(self) -> list[Any]:
        if self.roots is None:
            raise TransportError("HTTP 502 from GET /api/collection/tree")
        return [dict(root) for root in self.roots]

    async def fetch_collection_items(self, collection_id: Any) -> list[Any]:
        self.expanded.append(collection_id)
        if collection_id in self.failing_collections:
            raise TransportError(f"HTTP 500 from GET /api/collection/{collection_id}/items")
        return [dict(entry) if isinstance(entry, dict) else entry for entry in self.items.get(collection_id, [])]

    async def fetch_cards(self) -> list[Any]:
        if self.cards is None:
            raise TransportError("HTTP 500 from GET /api/card/")
        return [dict(card) if isinstance(card, dict) else card for card in self.cards]

    async def compile_query(self, dataset_query: dict[str, Any]) -> str:
        self.compile_calls.append(dataset_query)
        key = str(dataset_query.get("query", {}).get("source-table"))
        if key not in self.compiled:
            raise TransportError("HTTP 500 from POST /api/dataset/native")
        return self.compiled[key]


@pytest.fixture
def ops_metabase() -> FakeMetabase:
    """One collection ``1-ops`` holding native question 42."""
    return FakeMetabase(
        roots=[{"id": 1, "slug": "ops", "name": "Ops"}],
        items={1: [{"id": 42, "model": "question", "name": "Ping"}]},
        cards=[
            {
                "id": 42,
                "name": "Ping",
                "query_type": "native",
                "dataset_query": {"type": "native", "native": {"query": "SELECT 1"}},
            }
        ],
    )

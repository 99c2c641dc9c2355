"""Tests for card SQL resolution."""

from __future__ import annotations

import pytest
from conftest import FakeMetabase

from metabase2git.exceptions import SerializationGap
from metabase2git.resolver import build_card_map, resolve_serialized_body
from metabase2git.schemas import Card, IssueKind, SyncReport

BUILDER_QUERY = {"type": "query", "database": 1, "query": {"source-table": 2}}


class TestResolveSerializedBody:
    @pytest.mark.asyncio
    async def test_native_passes_through(self) -> None:
        card = Card.model_validate(
            {"id": 1, "query_type": "native", "dataset_query": {"native": {"query": "SELECT 1\n-- keep"}}}
        )

        assert await resolve_serialized_body(FakeMetabase(), card) == "SELECT 1\n-- keep"

    @pytest.mark.asyncio
    async def test_builder_is_compiled(self) -> None:
        client = FakeMetabase(compiled={"2": "SELECT * FROM orders"})
        card = Card.model_validate({"id": 1, "query_type": "query", "dataset_query": BUILDER_QUERY})

        assert await resolve_serialized_body(client, card) == "SELECT * FROM orders"
        assert client.compile_calls == [BUILDER_QUERY]

    @pytest.mark.asyncio
    async def test_unsupported_query_type(self) -> None:
        card = Card.model_validate({"id": 1, "query_type": "mbql5"})

        with pytest.raises(SerializationGap, match="unsupported serializer"):
            await resolve_serialized_body(FakeMetabase(), card)

    @pytest.mark.asyncio
    async def test_native_without_sql(self) -> None:
        card = Card.model_validate({"id": 1, "query_type": "native", "dataset_query": {}})

        with pytest.raises(SerializationGap, match="no stored query"):
            await resolve_serialized_body(FakeMetabase(), card)


class TestBuildCardMap:
    @pytest.mark.asyncio
    async def test_maps_every_card_by_id(self) -> None:
        client = FakeMetabase(
            cards=[
                {"id": 1, "query_type": "native", "dataset_query": {"native": {"query": "SELECT 1"}}},
                {"id": 2, "query_type": "query", "dataset_query": BUILDER_QUERY},
                {"id": 3, "query_type": None},
            ],
            compiled={"2": "SELECT * FROM orders"},
        )
        report = SyncReport()

        card_map = await build_card_map(client, report)

        assert sorted(card_map) == [1, 2, 3]
        assert card_map[1].serialized == "SELECT 1"
        assert card_map[2].serialized == "SELECT * FROM orders"
        assert card_map[3].serialized is None
        assert [issue.node_id for issue in report.of_kind(IssueKind.SERIALIZATION)] == [3]

    @pytest.mark.asyncio
    async def test_compile_failure_keeps_card(self) -> None:
        client = FakeMetabase(cards=[{"id": 2, "query_type": "query", "dataset_query": BUILDER_QUERY}])
        report = SyncReport()

        card_map = await build_card_map(client, report)

        assert card_map[2].serialized is None
        assert report.of_kind(IssueKind.TRANSPORT)[0].node_id == 2

    @pytest.mark.asyncio
    async def test_listing_failure_yields_none(self) -> None:
        report = SyncReport()

        assert await build_card_map(FakeMetabase(fail_cards=True), report) is None
        assert report.of_kind(IssueKind.TRANSPORT)

    @pytest.mark.asyncio
    async def test_malformed_card_is_skipped(self) -> None:
        client = FakeMetabase(
            cards=[
                {"id": 42, "query_type": "native", "dataset_query": {"native": {"query": "SELECT 42"}}},
                {"name": "no id", "query_type": "native"},
                {"id": 43, "query_type": "native", "dataset_query": {"native": {"query": "SELECT 43"}}},
            ]
        )
        report = SyncReport()

        card_map = await build_card_map(client, report)

        assert sorted(card_map) == [42, 43]
        assert card_map[42].serialized == "SELECT 42"
        assert card_map[43].serialized == "SELECT 43"
        issues = report.of_kind(IssueKind.INTEGRITY)
        assert len(issues) == 1
        assert "malformed card" in issues[0].message

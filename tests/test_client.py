"""Tests for the Metabase client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from metabase2git.client import SESSION_HEADER, MetabaseClient
from metabase2git.exceptions import AuthError, TransportError


def _response(payload: object, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json = MagicMock(return_value=payload)
    response.raise_for_status = MagicMock()
    return response


def _client(*payloads: object) -> tuple[MetabaseClient, AsyncMock]:
    http = AsyncMock()
    http.request = AsyncMock(side_effect=[_response(payload) for payload in payloads])
    return MetabaseClient("https://metabase.example.com/", "me", "secret", http_client=http), http


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_returns_and_stores_token(self) -> None:
        client, http = _client({"id": "abc-123"})

        token = await client.authenticate()

        assert token == "abc-123"
        assert client.token == "abc-123"
        method, url = http.request.call_args.args
        assert (method, url) == ("POST", "/api/session")
        assert http.request.call_args.kwargs["json"] == {"username": "me", "password": "secret"}

    @pytest.mark.asyncio
    async def test_missing_token_is_auth_error(self) -> None:
        client, _ = _client({"errors": {"password": "did not match"}})

        with pytest.raises(AuthError, match="did not contain a token"):
            await client.authenticate()

    @pytest.mark.asyncio
    async def test_transport_failure_is_auth_error(self) -> None:
        http = AsyncMock()
        http.request = AsyncMock(return_value=_response(None, status_code=503))
        client = MetabaseClient("https://metabase.example.com", "me", "secret", http_client=http)

        with pytest.raises(AuthError, match="Could not open a Metabase session"):
            await client.authenticate()

    @pytest.mark.asyncio
    async def test_requests_need_a_session(self) -> None:
        client, _ = _client([])

        with pytest.raises(AuthError, match="Not authenticated"):
            await client.fetch_cards()


class TestFetches:
    @pytest.mark.asyncio
    async def test_collection_tree(self) -> None:
        client, http = _client({"id": "t"}, [{"id": 1, "slug": "ops", "children": []}, {"id": 2}])
        await client.authenticate()

        roots = await client.fetch_collection_tree()

        assert roots == [{"id": 1, "slug": "ops", "children": []}, {"id": 2}]
        call = http.request.call_args
        assert call.args == ("GET", "/api/collection/tree")
        assert call.kwargs["params"] == {"tree": "true"}
        assert call.kwargs["headers"] == {SESSION_HEADER: "t"}

    @pytest.mark.asyncio
    async def test_collection_items_from_data(self) -> None:
        client, http = _client(
            {"id": "t"},
            {"data": [{"id": 5, "model": "collection"}, {"id": 42, "model": "card"}], "total": 2},
        )
        await client.authenticate()

        items = await client.fetch_collection_items(1)

        assert items == [{"id": 5, "model": "collection"}, {"id": 42, "model": "card"}]
        assert http.request.call_args.args == ("GET", "/api/collection/1/items")

    @pytest.mark.asyncio
    async def test_collection_items_bare_list(self) -> None:
        client, _ = _client({"id": "t"}, [{"id": 42, "model": "dashboard"}])
        await client.authenticate()

        items = await client.fetch_collection_items("root")

        assert items == [{"id": 42, "model": "dashboard"}]

    @pytest.mark.asyncio
    async def test_collection_items_bad_shape(self) -> None:
        client, _ = _client({"id": "t"}, {"message": "nope"})
        await client.authenticate()

        with pytest.raises(TransportError, match="Unexpected"):
            await client.fetch_collection_items(1)

    @pytest.mark.asyncio
    async def test_entries_are_returned_unvalidated(self) -> None:
        client, _ = _client({"id": "t"}, {"data": [{"model": "card"}, {"id": 42, "model": "card"}]})
        await client.authenticate()

        items = await client.fetch_collection_items(1)

        assert items == [{"model": "card"}, {"id": 42, "model": "card"}]

    @pytest.mark.asyncio
    async def test_cards_bad_shape(self) -> None:
        client, _ = _client({"id": "t"}, {"data": "nope"})
        await client.authenticate()

        with pytest.raises(TransportError, match="Unexpected"):
            await client.fetch_cards()

    @pytest.mark.asyncio
    async def test_cards(self) -> None:
        client, http = _client({"id": "t"}, [{"id": 42, "query_type": "native", "name": "Ping"}])
        await client.authenticate()

        cards = await client.fetch_cards()

        assert cards == [{"id": 42, "query_type": "native", "name": "Ping"}]
        assert http.request.call_args.args == ("GET", "/api/card/")

    @pytest.mark.asyncio
    async def test_compile_query(self) -> None:
        dataset_query = {"type": "query", "database": 1, "query": {"source-table": 2}}
        client, http = _client({"id": "t"}, {"query": "SELECT * FROM orders", "params": None})
        await client.authenticate()

        sql = await client.compile_query(dataset_query)

        assert sql == "SELECT * FROM orders"
        call = http.request.call_args
        assert call.args == ("POST", "/api/dataset/native")
        assert call.kwargs["json"] == dataset_query

    @pytest.mark.asyncio
    async def test_compile_query_without_query(self) -> None:
        client, _ = _client({"id": "t"}, {"error": "boom"})
        await client.authenticate()

        with pytest.raises(TransportError, match="did not contain a query"):
            await client.compile_query({"type": "query"})

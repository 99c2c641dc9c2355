"""Resolve each card to the SQL text written next to its metadata."""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import ValidationError

from metabase2git.exceptions import SerializationGap, TransportError
from metabase2git.schemas import (
    BUILDER_QUERY_TYPE,
    NATIVE_QUERY_TYPE,
    Card,
    IssueKind,
    NodeId,
    SyncReport,
)
from metabase2git.utils.logging_config import get_logger

logger = get_logger(__name__)


class CardSource(Protocol):
    async def fetch_cards(self) -> list[dict[str, Any]]: ...

    async def compile_query(self, dataset_query: dict) -> str: ...


async def resolve_serialized_body(client: CardSource, card: Card) -> str:
    """Return the canonical SQL for one card.

    Native cards pass their stored SQL through unchanged. Query-builder cards
    are compiled by Metabase.

    Raises:
        SerializationGap: If the card uses another query type or stores no SQL.
        TransportError: If the compile request fails.
    """
    if card.query_type == NATIVE_QUERY_TYPE:
        if card.native_query is None:
            raise SerializationGap(f"native card {card.id} has no stored query")
        return card.native_query

    if card.query_type == BUILDER_QUERY_TYPE:
        if not card.dataset_query:
            raise SerializationGap(f"query-builder card {card.id} has no dataset_query")
        return await client.compile_query(card.dataset_query)

    raise SerializationGap(f"unsupported serializer for card {card.id} (query_type={card.query_type!r})")


async def build_card_map(client: CardSource, report: SyncReport) -> dict[NodeId, Card] | None:
    """Fetch every card and attach its serialized SQL.

    Cards whose SQL cannot be resolved are still included, with
    ``serialized`` left as None, and the reason is recorded on ``report``.
    A card that fails validation is skipped and reported. A failed card
    listing yields None.
    """
    try:
        payloads = await client.fetch_cards()
    except TransportError as exc:
        report.record(IssueKind.TRANSPORT, f"could not list cards: {exc}")
        return None

    card_map: dict[NodeId, Card] = {}
    for payload in payloads:
        try:
            card = Card.model_validate(payload)
        except ValidationError as exc:
            node_id = payload.get("id") if isinstance(payload, dict) else None
            report.record(
                IssueKind.INTEGRITY,
                f"skipping malformed card: {exc.errors()[0]['msg']}",
                node_id=node_id if isinstance(node_id, (int, str)) else None,
            )
            continue

        try:
            card.serialized = await resolve_serialized_body(client, card)
        except SerializationGap as exc:
            report.record(IssueKind.SERIALIZATION, str(exc), node_id=card.id)
        except TransportError as exc:
            report.record(IssueKind.TRANSPORT, f"could not compile card {card.id}: {exc}", node_id=card.id)
        card_map[card.id] = card

    logger.info("resolved %d cards", len(card_map))
    return card_map

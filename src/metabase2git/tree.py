"""Build the collection tree by expanding collections breadth-first."""

from __future__ import annotations

from collections import deque
from typing import Any, Callable, Protocol

from pydantic import ValidationError

from metabase2git.exceptions import TransportError
from metabase2git.schemas import CollectionNode, IssueKind, NodeId, SyncReport, TreeNode, entry_from_payload
from metabase2git.utils.logging_config import get_logger

logger = get_logger(__name__)


class CollectionSource(Protocol):
    async def fetch_collection_tree(self) -> list[dict[str, Any]]: ...

    async def fetch_collection_items(self, collection_id: Any) -> list[dict[str, Any]]: ...


def parse_entries(
    payloads: list[Any],
    parse: Callable[[Any], TreeNode],
    report: SyncReport,
    *,
    source: str,
) -> list[TreeNode]:
    """Validate entries one at a time, skipping and reporting malformed ones."""
    nodes: list[TreeNode] = []
    for payload in payloads:
        try:
            nodes.append(parse(payload))
        except ValidationError as exc:
            node_id = payload.get("id") if isinstance(payload, dict) else None
            report.record(
                IssueKind.INTEGRITY,
                f"skipping malformed entry in {source}: {exc.errors()[0]['msg']}",
                node_id=node_id if isinstance(node_id, (int, str)) else None,
            )
    return nodes


async def expand_collections(
    client: CollectionSource,
    roots: list[CollectionNode],
    report: SyncReport,
) -> list[CollectionNode]:
    """Attach children to every collection reachable from ``roots``.

    Metabase guarantees the hierarchy is a tree, but nothing here relies on
    it: each collection id is expanded at most once. A repeated id is left
    with no children and reported as a cycle.

    Children keep the order Metabase returns them in. A collection whose
    children cannot be fetched keeps ``items`` as None, which tells the
    materializer its directory contents are unknown rather than empty.
    """
    pending: deque[CollectionNode] = deque(roots)
    expanded: set[NodeId] = set()

    while pending:
        node = pending.popleft()
        if node.id in expanded:
            report.record(IssueKind.CYCLE, f"collection {node.id} was already expanded", node_id=node.id)
            node.items = []
            continue
        expanded.add(node.id)

        try:
            payloads = await client.fetch_collection_items(node.id)
        except TransportError as exc:
            report.record(IssueKind.TRANSPORT, f"could not list collection {node.id}: {exc}", node_id=node.id)
            continue

        children = parse_entries(payloads, entry_from_payload, report, source=f"collection {node.id}")
        node.items = children
        pending.extend(child for child in children if isinstance(child, CollectionNode))

    logger.info("expanded %d collections", len(expanded))
    return roots


async def build_tree(client: CollectionSource, report: SyncReport) -> list[CollectionNode] | None:
    """Fetch the top-level collections and expand them.

    There is no single root; the result is the ordered list of top-level
    collections. A failed root listing yields None.
    """
    try:
        payloads = await client.fetch_collection_tree()
    except TransportError as exc:
        report.record(IssueKind.TRANSPORT, f"could not list collection tree: {exc}")
        return None
    roots = parse_entries(payloads, CollectionNode.model_validate, report, source="collection tree")
    return await expand_collections(client, roots, report)

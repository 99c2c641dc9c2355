"""Write the collection tree to disk as a mirrored directory layout.

Layout for a collection ``{id: 1, slug: "ops"}`` holding question 42::

    <root>/1-ops/collection-1-metadata.json
    <root>/1-ops/question-42-metadata.json
    <root>/1-ops/question-42.sql

Every file name embeds the node id, so two nodes never share a path.
"""

from __future__ import annotations

from pathlib import Path

from metabase2git.exceptions import FilesystemError, IntegrityError
from metabase2git.fs_utils import dump_json, list_dir_async, mkdir_async, remove_path_async, write_text_async
from metabase2git.schemas import Card, CollectionNode, IssueKind, ItemNode, NodeId, SyncReport, TreeNode
from metabase2git.utils.logging_config import get_logger

logger = get_logger(__name__)

METADATA_SUFFIX = "-metadata.json"
BODY_SUFFIX = ".sql"


def collection_metadata_name(node: CollectionNode) -> str:
    return f"collection-{node.id}{METADATA_SUFFIX}"


def item_metadata_name(node: ItemNode) -> str:
    return f"{node.model}-{node.id}{METADATA_SUFFIX}"


def item_body_name(node: ItemNode) -> str:
    return f"{node.model}-{node.id}{BODY_SUFFIX}"


class TreeWriter:
    """Materialize a tree under ``root`` and collect the path index.

    Writes are best-effort: each failure is recorded on ``report`` and the
    walk moves on to the next node.

    With ``prune`` set, entries left over from earlier runs are deleted from
    the root and from every expanded collection directory, so each directory
    holds exactly what the current tree produces. Hidden entries at the root
    (``.git`` among them) are never touched, and a collection whose children
    could not be fetched (``items`` is None) keeps its previous contents.

    Attributes:
        root: Destination directory for top-level collections.
        cards: Card map from the resolver, keyed by id.
        report: Issue sink shared with the rest of the run.
        prune: Whether to delete stale entries.
        path_index: Card id to the directory its files were written in.
    """

    def __init__(
        self,
        root: Path,
        cards: dict[NodeId, Card],
        report: SyncReport,
        *,
        prune: bool = True,
    ) -> None:
        self.root = root
        self.cards = cards
        self.report = report
        self.prune = prune
        self.path_index: dict[NodeId, Path] = {}

    async def write_tree(self, tree: list[CollectionNode]) -> dict[NodeId, Path]:
        """Write every top-level collection and return the path index."""
        if not await self._mkdir(self.root, node_id=None):
            return self.path_index

        produced: set[str] = set()
        for node in tree:
            produced |= await self.write_node(node, self.root)

        if self.prune:
            await self._remove_stale(self.root, produced, keep_hidden=True)
        logger.info("materialized %d items under %s", len(self.path_index), self.root)
        return self.path_index

    async def write_node(self, node: TreeNode, parent: Path) -> set[str]:
        """Write one node (and, for a collection, its subtree) under ``parent``.

        Returns:
            Names of the entries in ``parent`` that belong to this node.
        """
        if isinstance(node, CollectionNode):
            return await self._write_collection(node, parent)
        return await self._write_item(node, parent)

    async def _write_collection(self, node: CollectionNode, parent: Path) -> set[str]:
        directory = parent / node.dir_name
        if not await self._mkdir(directory, node_id=node.id):
            return {node.dir_name}

        metadata_name = collection_metadata_name(node)
        await self._write(directory / metadata_name, dump_json(node.to_record()), node_id=node.id)

        produced = {metadata_name}
        for child in node.items or []:
            produced |= await self.write_node(child, directory)

        if self.prune and node.items is not None:
            await self._remove_stale(directory, produced)
        return {node.dir_name}

    def card_for(self, node: ItemNode) -> Card:
        """Look up the card record behind a tree item.

        Raises:
            IntegrityError: If the card map has no record for ``node.id``.
        """
        card = self.cards.get(node.id)
        if card is None:
            raise IntegrityError(f"{node.model} {node.id} has no matching card record")
        return card

    async def _write_item(self, node: ItemNode, directory: Path) -> set[str]:
        try:
            card = self.card_for(node)
        except IntegrityError as exc:
            self.report.record(IssueKind.INTEGRITY, str(exc), node_id=node.id, path=directory)
            return set()

        metadata_name = item_metadata_name(node)
        await self._write(directory / metadata_name, dump_json(card.to_record()), node_id=node.id)

        if node.id in self.path_index:
            self.report.record(
                IssueKind.INTEGRITY,
                f"{node.model} {node.id} appears more than once; keeping {self.path_index[node.id]}",
                node_id=node.id,
                path=directory,
            )
        else:
            self.path_index[node.id] = directory

        if card.serialized is None:
            self.report.record(
                IssueKind.SERIALIZATION,
                f"unserialized card can't be written for {node.model} {node.id}",
                node_id=node.id,
                path=directory,
            )
            return {metadata_name}

        body_name = item_body_name(node)
        await self._write(directory / body_name, card.serialized, node_id=node.id)
        return {metadata_name, body_name}

    async def _remove_stale(self, directory: Path, produced: set[str], *, keep_hidden: bool = False) -> None:
        try:
            entries = await list_dir_async(directory)
        except FilesystemError as exc:
            self.report.record(IssueKind.FILESYSTEM, str(exc), path=directory)
            return

        for entry in entries:
            if entry.name in produced or (keep_hidden and entry.name.startswith(".")):
                continue
            logger.debug("removing stale %s", entry)
            try:
                await remove_path_async(entry)
            except FilesystemError as exc:
                self.report.record(IssueKind.FILESYSTEM, str(exc), path=entry)

    async def _mkdir(self, directory: Path, *, node_id: NodeId | None) -> bool:
        try:
            await mkdir_async(directory, parents=True, exist_ok=True)
        except FilesystemError as exc:
            self.report.record(IssueKind.FILESYSTEM, str(exc), node_id=node_id, path=directory)
            return False
        return True

    async def _write(self, path: Path, content: str, *, node_id: NodeId) -> None:
        try:
            await write_text_async(path, content)
        except FilesystemError as exc:
            self.report.record(IssueKind.FILESYSTEM, str(exc), node_id=node_id, path=path)


async def materialize_tree(
    tree: list[CollectionNode],
    cards: dict[NodeId, Card],
    root: Path,
    report: SyncReport,
    *,
    prune: bool = True,
) -> dict[NodeId, Path]:
    """Write ``tree`` under ``root`` and return the card-id to directory index.

    Pass ``prune=False`` when the tree or card listing is incomplete, so a
    failed fetch never deletes the previous mirror.
    """
    return await TreeWriter(root, cards, report, prune=prune).write_tree(tree)

"""Collection tree node models."""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

COLLECTION_MODEL = "collection"

NodeId = Union[int, str]


def remote_fields(model: BaseModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
    """Dump the fields Metabase actually sent, dropping unset declared defaults."""
    record = model.model_dump(mode="json", exclude=exclude)
    for name in type(model).model_fields:
        if name not in model.model_fields_set:
            record.pop(name, None)
    return record


class ItemNode(BaseModel):
    """A non-collection entry of a collection (card, dashboard, pulse, ...)."""

    model_config = ConfigDict(extra="allow")

    id: NodeId
    model: str

    def to_record(self) -> dict[str, Any]:
        """Return the remote fields of this entry as plain JSON data."""
        return remote_fields(self)


class CollectionNode(BaseModel):
    """A collection; its children stay ``None`` until the tree builder expands it.

    Attributes:
        id: Remote identifier.
        slug: Optional URL slug, used in the directory name.
        model: Kind discriminator as reported by Metabase.
        items: Expanded child entries, serialized as ``_items``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: NodeId
    slug: str | None = None
    model: str = COLLECTION_MODEL
    items: list[Union[CollectionNode, ItemNode]] | None = Field(default=None, alias="_items")

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, v: Any) -> Any:
        """Dispatch raw child payloads to the right node type."""
        if v is None:
            return None
        return [entry_from_payload(item) if isinstance(item, dict) else item for item in v]

    @property
    def dir_name(self) -> str:
        """Directory name: ``<id>-<slug>`` when a slug is present, else ``<id>``."""
        if self.slug:
            return f"{self.id}-{self.slug}"
        return str(self.id)

    def to_record(self) -> dict[str, Any]:
        """Return the remote fields plus the expanded ``_items`` projection."""
        record = remote_fields(self, exclude={"items"})
        if self.items is not None:
            record["_items"] = [child.to_record() for child in self.items]
        return record


TreeNode = Union[CollectionNode, ItemNode]


def is_container(payload: Any) -> bool:
    """Return True for collection entries and entries already carrying children."""
    if not isinstance(payload, dict):
        return False
    return payload.get("model") == COLLECTION_MODEL or "_items" in payload


def entry_from_payload(payload: Any) -> TreeNode:
    """Build the node type matching a raw entry's kind.

    Raises:
        ValidationError: If the payload is not a usable entry.
    """
    if is_container(payload):
        return CollectionNode.model_validate(payload)
    return ItemNode.model_validate(payload)


CollectionNode.model_rebuild()

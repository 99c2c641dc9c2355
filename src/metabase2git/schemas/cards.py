"""Card (saved question) model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from metabase2git.schemas.nodes import NodeId, remote_fields

NATIVE_QUERY_TYPE = "native"
BUILDER_QUERY_TYPE = "query"


class Card(BaseModel):
    """An artifact record from ``/api/card`` plus its resolved SQL.

    ``serialized`` is filled by the resolver and never written to metadata.
    """

    model_config = ConfigDict(extra="allow")

    id: NodeId
    query_type: str | None = None
    dataset_query: dict[str, Any] | None = None
    serialized: str | None = Field(default=None, exclude=True)

    @property
    def native_query(self) -> str | None:
        """The SQL stored on a native card, if any."""
        native = (self.dataset_query or {}).get("native") or {}
        query = native.get("query")
        return query if isinstance(query, str) else None

    def to_record(self) -> dict[str, Any]:
        """Return the remote fields of this card as plain JSON data."""
        return remote_fields(self)

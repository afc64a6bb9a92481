"""Pydantic base schema utilities for PayToll models.

Provides a common `BaseSchema` with camelCase aliasing for every wire model
under `paytoll_mcp.schemas`. The PayToll API speaks camelCase JSON while the
Python side uses snake_case attribute names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def _to_camel(s: str) -> str:
    """Convert snake_case to camelCase for JSON aliasing."""
    parts = s.split("_")
    return parts[0] + "".join(p.capitalize() or "_" for p in parts[1:])


class BaseSchema(BaseModel):
    """Shared base for all Pydantic models in paytoll_mcp.

    - Ignores unknown fields so newer servers never break ingestion
    - Enables populate_by_name for using either snake_case or camelCase
    - Uses a snake->camel alias generator for JSON interop
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        alias_generator=_to_camel,
    )

    def to_wire(self) -> dict:
        """Dump to a JSON-compatible dict using camelCase keys, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

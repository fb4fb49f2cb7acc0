"""Pydantic models for the media reconciliation engine."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PlaceholderShape(str, Enum):
    INLINE = "inline"
    REFERENCE = "reference"


class PlaceholderMatch(BaseModel):
    """A caption placeholder found in converter output.

    Spans are half-open ``[start, end)`` offsets into the scanned ``str``.
    """

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)
    shape: PlaceholderShape
    caption: str
    label: str | None = None  # normalized link label, None for explicit targets
    path: str | None = None
    path_span: tuple[int, int] | None = None
    size: str | None = None
    size_span: tuple[int, int] | None = None


class LinkDefinition(BaseModel):
    """A link reference definition line such as ``[label]: path {width=... height=...}``."""

    model_config = ConfigDict(frozen=True)

    label: str
    path: str
    size: str | None = None
    start: int = Field(ge=0)
    end: int = Field(ge=0)


class MediaAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    original_name: str
    extension: str  # lower-case, leading dot
    ordinal: int = Field(ge=0)

    def renamed(self, base_name: str) -> RenamedAsset:
        return RenamedAsset(
            original_name=self.original_name,
            extension=self.extension,
            ordinal=self.ordinal,
            new_name=f"{base_name}-img{self.ordinal + 1}{self.extension}",
        )


class RenamedAsset(MediaAsset):
    new_name: str


class Rename(BaseModel):
    model_config = ConfigDict(frozen=True)

    original_name: str
    new_name: str


class ReconciliationWarning(BaseModel):
    """A recoverable problem folded into the report instead of raised."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inventory_read", "path_resolution", "order_mismatch", "missing_asset"]
    message: str
    path: str | None = None


class ReconciliationReport(BaseModel):
    renames: list[Rename] = Field(default_factory=list)
    unresolved_placeholder_count: int = Field(default=0, ge=0)
    unused_asset_count: int = Field(default=0, ge=0)
    normalized_link_count: int = Field(default=0, ge=0)
    warnings: list[ReconciliationWarning] = Field(default_factory=list)

    @property
    def placeholder_count(self) -> int:
        return len(self.renames) + self.unresolved_placeholder_count


class ReconciliationResult(BaseModel):
    rewritten_text: str
    report: ReconciliationReport

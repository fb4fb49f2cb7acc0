"""Builds the ordered list of extracted media assets from a directory listing."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import MediaAsset

logger = logging.getLogger(__name__)

RASTER_EXTENSIONS: frozenset[str] = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff", ".webp"}
)


def _entry_name(entry: str) -> str:
    """Last path component of a listing entry; vault adapters return full paths."""
    return entry.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


def _extension(name: str) -> str:
    dot = name.rfind(".")
    if dot <= 0:
        return ""
    return name[dot:].lower()


class MediaInventory:
    """Filters a listing down to raster images and numbers them in listing order.

    Ordinals are taken from the listing as given. The caller decides that
    order; ``FileSystemVault.list_directory`` returns names in natural order,
    which is how pandoc numbers the files it extracts.
    """

    def __init__(self, allowed_extensions: Iterable[str] = RASTER_EXTENSIONS) -> None:
        self.allowed_extensions = frozenset(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in allowed_extensions
        )

    def build(self, listing: Iterable[str]) -> list[MediaAsset]:
        assets: list[MediaAsset] = []
        for entry in listing:
            name = _entry_name(entry)
            ext = _extension(name)
            if ext not in self.allowed_extensions:
                logger.debug("Skipping non-raster entry %s", entry)
                continue
            assets.append(MediaAsset(original_name=name, extension=ext, ordinal=len(assets)))
        return assets

"""Media reconciliation engine: pairs caption placeholders with extracted images."""

from .inventory import RASTER_EXTENSIONS, MediaInventory
from .models import (
    LinkDefinition,
    MediaAsset,
    PlaceholderMatch,
    PlaceholderShape,
    ReconciliationReport,
    ReconciliationResult,
    ReconciliationWarning,
    Rename,
    RenamedAsset,
)
from .paths import PathNormalizer, PathResolutionError
from .pipeline import ReconciliationPipeline, reconcile
from .rewriter import DEFAULT_NOT_FOUND_ALT, LinkRewriter
from .scanner import DEFAULT_CAPTION_MARKERS, PlaceholderScanner, find_definitions

__all__ = [
    "DEFAULT_CAPTION_MARKERS",
    "DEFAULT_NOT_FOUND_ALT",
    "LinkDefinition",
    "LinkRewriter",
    "MediaAsset",
    "MediaInventory",
    "PathNormalizer",
    "PathResolutionError",
    "PlaceholderMatch",
    "PlaceholderScanner",
    "PlaceholderShape",
    "RASTER_EXTENSIONS",
    "ReconciliationPipeline",
    "ReconciliationReport",
    "ReconciliationResult",
    "ReconciliationWarning",
    "Rename",
    "RenamedAsset",
    "find_definitions",
    "reconcile",
]

"""Scan, pair, rewrite and normalize one document.

The pipeline does no I/O. Callers read the Markdown and list the media
directory, hand both in, and write ``rewritten_text`` back themselves.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .inventory import MediaInventory
from .models import (
    LinkDefinition,
    PlaceholderMatch,
    PlaceholderShape,
    ReconciliationResult,
    ReconciliationWarning,
)
from .paths import PathNormalizer, PathResolutionError, is_absolute_path
from .rewriter import LinkRewriter, format_link_target
from .scanner import PlaceholderScanner, find_definitions, normalize_label

if TYPE_CHECKING:
    from docxvault.config.models import ReconcileConfig

logger = logging.getLogger(__name__)

_IMAGE_TARGET_RE = re.compile(r"!\[[^\]\n]*\]\(\s*(?:<(?P<angle>[^>\n]+)>|(?P<bare>[^)\s]+))")
_IMAGE_REFERENCE_RE = re.compile(r"!\[(?P<alt>[^\]\n]*)\](?:\[(?P<label>[^\]\n]*)\])?(?![(\[])")
_DEFINITION_TARGET_RE = re.compile(
    r"^[ ]{0,3}\[(?P<label>[^\]\n]+)\]:[ \t]*(?:<(?P<angle>[^>\n]+)>|(?P<bare>\S+))", re.MULTILINE
)
_FENCE_RE = re.compile(
    r"^[ ]{0,3}(?P<fence>`{3,}|~{3,})[^\n]*\n.*?(?:^[ ]{0,3}(?P=fence)[ \t]*$|\Z)",
    re.MULTILINE | re.DOTALL,
)


def _coerce_text(text: str | bytes) -> str:
    if isinstance(text, bytes):
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError(f"Document text is not valid UTF-8: {exc}") from exc
    if not isinstance(text, str):
        raise TypeError(f"Document text must be str or bytes, not {type(text).__name__}")
    return text


class ReconciliationPipeline:
    def __init__(
        self,
        scanner: PlaceholderScanner | None = None,
        inventory: MediaInventory | None = None,
        normalizer: PathNormalizer | None = None,
        rewriter: LinkRewriter | None = None,
        normalize_remaining_links: bool = True,
    ) -> None:
        self.scanner = scanner or PlaceholderScanner()
        self.inventory = inventory or MediaInventory()
        self.normalizer = normalizer or PathNormalizer()
        self.rewriter = rewriter or LinkRewriter()
        self.normalize_remaining_links = normalize_remaining_links

    @classmethod
    def from_config(cls, config: ReconcileConfig, *, link_to_new_names: bool = False) -> ReconciliationPipeline:
        return cls(
            scanner=PlaceholderScanner(
                config.caption_markers,
                [PlaceholderShape(s) for s in config.shapes],
            ),
            inventory=MediaInventory(config.raster_extensions),
            rewriter=LinkRewriter(
                not_found_alt=config.not_found_alt,
                keep_size_attributes=config.keep_size_attributes,
                link_to_new_names=link_to_new_names,
            ),
            normalize_remaining_links=config.normalize_remaining_links,
        )

    def reconcile(
        self,
        text: str | bytes,
        listing: Iterable[str] | None,
        base_name: str,
        relative_media_dir: str,
        root_path: str,
    ) -> ReconciliationResult:
        """Run one reconciliation pass.

        ``listing=None`` means the media directory could not be read: every
        placeholder becomes a not-found marker and an ``inventory_read``
        warning is reported.
        """
        text = _coerce_text(text)
        if not base_name:
            raise ValueError("base_name is required")

        warnings: list[ReconciliationWarning] = []
        if listing is None:
            warnings.append(
                ReconciliationWarning(
                    kind="inventory_read",
                    message=f"Media directory could not be read: {relative_media_dir}",
                    path=relative_media_dir,
                )
            )
            logger.warning(warnings[-1].message)
            listing = []

        assets = self.inventory.build(listing)
        matches, removals = _join_definitions(list(self.scanner.scan(text)), find_definitions(text))
        matches = [self._resolve_match(m, root_path, warnings) for m in matches]
        logger.debug("Found %d placeholder(s) and %d asset(s)", len(matches), len(assets))

        result = self.rewriter.rewrite(
            text, matches, assets, base_name, relative_media_dir, removals
        )
        rewritten = result.rewritten_text
        warnings.extend(result.report.warnings)

        normalized = 0
        if self.normalize_remaining_links:
            rewritten, normalized = self._normalize_links(rewritten, root_path, warnings)

        report = result.report.model_copy(
            update={"normalized_link_count": normalized, "warnings": _dedupe(warnings)}
        )
        return ReconciliationResult(rewritten_text=rewritten, report=report)

    # -- Internals -----------------------------------------------------------

    def _resolve(
        self, path: str, root_path: str, warnings: list[ReconciliationWarning]
    ) -> str | None:
        """Relative form of ``path``, or None when it must stay as it is."""
        try:
            return self.normalizer.normalize(path, root_path)
        except PathResolutionError as exc:
            warnings.append(ReconciliationWarning(kind="path_resolution", message=str(exc), path=path))
            logger.warning(str(exc))
            return None

    def _resolve_match(
        self, match: PlaceholderMatch, root_path: str, warnings: list[ReconciliationWarning]
    ) -> PlaceholderMatch:
        if not match.path:
            return match
        resolved = self._resolve(match.path, root_path, warnings)
        if resolved is None or resolved == match.path:
            return match
        return match.model_copy(update={"path": resolved})

    def _normalize_links(
        self, text: str, root_path: str, warnings: list[ReconciliationWarning]
    ) -> tuple[str, int]:
        """Relativize absolute image targets left outside any placeholder.

        Only inline image targets and definitions used by an image reference
        are touched; fenced code blocks are skipped.
        """
        count = 0

        def _rewrite_target(m: re.Match[str], fences: list[tuple[int, int]]) -> str:
            nonlocal count
            if _inside(m.start(), fences):
                return m.group(0)
            group = "angle" if m.group("angle") is not None else "bare"
            target = m.group(group)
            if not is_absolute_path(target):
                return m.group(0)
            resolved = self._resolve(target, root_path, warnings)
            if resolved is None:
                return m.group(0)
            count += 1
            start, end = m.span(group)
            if group == "angle":
                start, end = start - 1, end + 1
            offset = m.start()
            whole = m.group(0)
            return whole[: start - offset] + format_link_target(resolved) + whole[end - offset :]

        fences = _fence_spans(text)
        text = _IMAGE_TARGET_RE.sub(lambda m: _rewrite_target(m, fences), text)

        fences = _fence_spans(text)
        image_labels = {
            normalize_label(m.group("label") or m.group("alt"))
            for m in _IMAGE_REFERENCE_RE.finditer(text)
            if not _inside(m.start(), fences)
        }

        def _rewrite_definition(m: re.Match[str]) -> str:
            if normalize_label(m.group("label")) not in image_labels:
                return m.group(0)
            return _rewrite_target(m, fences)

        text = _DEFINITION_TARGET_RE.sub(_rewrite_definition, text)
        return text, count


def _join_definitions(
    matches: list[PlaceholderMatch], definitions: dict[str, LinkDefinition]
) -> tuple[list[PlaceholderMatch], list[tuple[int, int]]]:
    """Fold each body reference and its definition into one placeholder.

    ``pandoc --reference-links`` writes ``![caption]`` in the body and
    ``[caption]: path {size}`` at the end. The body reference takes over the
    definition's path and size, the definition line is removed, and a
    placeholder match on the definition itself is dropped.
    """
    used: dict[str, LinkDefinition] = {}
    joined: list[PlaceholderMatch] = []
    for m in matches:
        if m.shape is PlaceholderShape.INLINE and m.label is not None and m.label in definitions:
            definition = definitions[m.label]
            used[m.label] = definition
            m = m.model_copy(update={"path": definition.path, "size": m.size or definition.size})
        joined.append(m)

    consumed = {d.start for d in used.values()}
    joined = [m for m in joined if not (m.shape is PlaceholderShape.REFERENCE and m.start in consumed)]
    removals = sorted((d.start, d.end) for d in used.values())
    return joined, removals


def _fence_spans(text: str) -> list[tuple[int, int]]:
    return [m.span() for m in _FENCE_RE.finditer(text)]


def _inside(pos: int, spans: list[tuple[int, int]]) -> bool:
    return any(start <= pos < end for start, end in spans)


def _dedupe(warnings: list[ReconciliationWarning]) -> list[ReconciliationWarning]:
    seen: set[tuple[str, str | None]] = set()
    unique: list[ReconciliationWarning] = []
    for w in warnings:
        key = (w.kind, w.path)
        if w.kind not in ("order_mismatch", "missing_asset") and key in seen:
            continue
        seen.add(key)
        unique.append(w)
    return unique


_default_pipeline: ReconciliationPipeline | None = None


def reconcile(
    text: str | bytes,
    listing: Iterable[str] | None,
    base_name: str,
    relative_media_dir: str,
    root_path: str,
) -> ReconciliationResult:
    """Reconcile with the default scanner, raster set and not-found marker."""
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = ReconciliationPipeline()
    return _default_pipeline.reconcile(text, listing, base_name, relative_media_dir, root_path)

"""Rewrites placeholder spans into image links, pairing them FIFO with assets."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from .models import (
    MediaAsset,
    PlaceholderMatch,
    ReconciliationReport,
    ReconciliationResult,
    ReconciliationWarning,
    Rename,
)

logger = logging.getLogger(__name__)

DEFAULT_NOT_FOUND_ALT = "Image not found"

_NEEDS_ANGLE_RE = re.compile(r"[\s()]")


def join_media_path(relative_media_dir: str, name: str) -> str:
    directory = relative_media_dir.replace("\\", "/").strip("/")
    return f"{directory}/{name}" if directory else name


def format_link_target(target: str) -> str:
    """Wrap targets containing whitespace or parentheses in ``<...>``."""
    if _NEEDS_ANGLE_RE.search(target):
        return f"<{target}>"
    return target


def _basename(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


class LinkRewriter:
    """Replaces each placeholder with a Markdown image link.

    The output is rebuilt from the untouched segments between matches and the
    replacement strings, so text outside matched and removed spans is never modified.
    """

    def __init__(
        self,
        not_found_alt: str = DEFAULT_NOT_FOUND_ALT,
        keep_size_attributes: bool = False,
        link_to_new_names: bool = False,
    ) -> None:
        self.not_found_alt = not_found_alt
        self.keep_size_attributes = keep_size_attributes
        self.link_to_new_names = link_to_new_names

    def rewrite(
        self,
        text: str,
        matches: Iterable[PlaceholderMatch],
        assets: Sequence[MediaAsset],
        base_name: str,
        relative_media_dir: str,
        removals: Iterable[tuple[int, int]] = (),
    ) -> ReconciliationResult:
        """Replace every match and delete every ``removals`` span.

        A match that carries a ``path`` (a reference definition, or a body
        reference joined to one) links to that path unless the rewriter points
        links at the new file names.
        """
        edits: list[tuple[int, int, PlaceholderMatch | None]] = [(m.start, m.end, m) for m in matches]
        edits.extend((start, end, None) for start, end in removals)
        edits.sort(key=lambda e: e[0])

        segments: list[str] = []
        renames: list[Rename] = []
        warnings: list[ReconciliationWarning] = []
        unresolved = 0
        cursor = 0
        pos = 0

        for start, end, match in edits:
            if start < pos:
                raise ValueError(f"Placeholder matches overlap or are out of order at {start}")
            segments.append(text[pos:start])
            pos = end
            if match is None:
                continue

            if cursor < len(assets):
                renamed = assets[cursor].renamed(base_name)
                cursor += 1
                renames.append(Rename(original_name=renamed.original_name, new_name=renamed.new_name))
                alt = renamed.new_name
                on_disk = renamed.new_name if self.link_to_new_names else renamed.original_name
                target = join_media_path(relative_media_dir, on_disk)
                if match.path:
                    if _basename(match.path) != renamed.original_name:
                        warnings.append(self._warn(
                            "order_mismatch",
                            f"Placeholder at offset {match.start} references "
                            f"{_basename(match.path)} but was paired with {renamed.original_name}",
                            match.path,
                        ))
                    if not self.link_to_new_names:
                        target = match.path
            else:
                unresolved += 1
                alt = self.not_found_alt
                target = ""
                if match.path:
                    warnings.append(self._warn(
                        "missing_asset",
                        f"Placeholder at offset {match.start} references {match.path} "
                        "but no extracted media file is left to pair it with",
                        match.path,
                    ))

            segments.append(self._link(alt, target, match))

        segments.append(text[pos:])

        if unresolved:
            logger.warning("%d placeholder(s) had no matching media file", unresolved)
        unused = len(assets) - cursor
        if unused:
            logger.warning("%d extracted media file(s) were not referenced", unused)

        report = ReconciliationReport(
            renames=renames,
            unresolved_placeholder_count=unresolved,
            unused_asset_count=unused,
            warnings=warnings,
        )
        return ReconciliationResult(rewritten_text="".join(segments), report=report)

    def _warn(self, kind: str, message: str, path: str) -> ReconciliationWarning:
        logger.warning(message)
        return ReconciliationWarning(kind=kind, message=message, path=path)

    def _link(self, alt: str, target: str, match: PlaceholderMatch) -> str:
        link = f"![{alt}]({format_link_target(target) if target else ''})"
        if self.keep_size_attributes and match.size and target:
            size = match.size
            if size.startswith("("):
                size = "{" + size[1:-1] + "}"
            link += size
        return link

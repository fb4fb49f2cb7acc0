"""Locates auto-generated image caption placeholders in converter output.

Word stores a machine-written alt text ("A picture containing ... Description
automatically generated") for images that have none. Pandoc carries it into the
Markdown as an inline image, a reference definition, or (with
``--reference-links``) a shortcut reference in the body plus its definition:

    ![Ein Bild, das Text enthält. Automatisch generierte Beschreibung]
    [Ein Bild, das Text enthält. Automatisch generierte Beschreibung]: C:/vault/media/image1.png {width="5in" height="3in"}

Only captions ending in one of the configured marker phrases are matched, so
ordinary images with real alt text are left alone.

The shortcut and its definition are joined by label in the pipeline
(see ``find_definitions``), so together they stand for one image.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from .models import LinkDefinition, PlaceholderMatch, PlaceholderShape

DEFAULT_CAPTION_MARKERS: tuple[str, ...] = (
    "Automatisch generierte Beschreibung",
    "Description automatically generated",
    "Description générée automatiquement",
)

_SIZE = r'width="[^"]*"\s*height="[^"]*"'


def _caption(group: str, markers: str) -> str:
    # Never crosses a closing bracket, so two images on one line stay separate
    return rf"(?P<{group}>[^\]]*?(?:{markers})[.\s]*)"


def _reference_pattern(markers: str) -> str:
    return (
        r"^[ ]{0,3}\[" + _caption("ref_caption", markers) + r"\]:[ \t]*"
        r"(?:<(?P<ref_angle>[^>\n]+)>|(?P<ref_path>[^\s{]+))"
        r"(?:[ \t]*(?P<ref_size>\{" + _SIZE + r"\}))?"
    )


def _inline_pattern(markers: str) -> str:
    return (
        r"!\[" + _caption("inline_caption", markers) + r"\]"
        r"(?:\[(?P<inline_label>[^\]\n]*)\]|(?P<inline_target>\((?!\s*width=)[^)\n]*\)))?"
        r"(?:[ \t]*(?P<inline_size>\(" + _SIZE + r"\)|\{" + _SIZE + r"\}))?"
    )


def compile_placeholder_pattern(
    markers: Iterable[str],
    shapes: Iterable[PlaceholderShape] = (PlaceholderShape.INLINE, PlaceholderShape.REFERENCE),
) -> re.Pattern[str]:
    """Build one alternation regex covering every enabled placeholder shape."""
    phrases = [m for m in markers if m]
    if not phrases:
        raise ValueError("At least one caption marker phrase is required")
    enabled = set(shapes)
    if not enabled:
        raise ValueError("At least one placeholder shape must be enabled")

    alternation = "|".join(re.escape(p) for p in phrases)
    parts: list[str] = []
    if PlaceholderShape.REFERENCE in enabled:
        parts.append(f"(?P<reference>{_reference_pattern(alternation)})")
    if PlaceholderShape.INLINE in enabled:
        parts.append(f"(?P<inline>{_inline_pattern(alternation)})")
    return re.compile("|".join(parts), re.MULTILINE)


class PlaceholderScanner:
    """Produces placeholder matches in document order.

    ``scan`` is a pure function of its input: every call returns a fresh lazy
    iterator, and the matches never overlap because they come from a single
    left-to-right ``finditer`` pass.
    """

    def __init__(
        self,
        markers: Iterable[str] = DEFAULT_CAPTION_MARKERS,
        shapes: Iterable[PlaceholderShape] = (PlaceholderShape.INLINE, PlaceholderShape.REFERENCE),
    ) -> None:
        self._pattern = compile_placeholder_pattern(markers, shapes)

    def scan(self, text: str) -> Iterator[PlaceholderMatch]:
        for m in self._pattern.finditer(text):
            yield _to_match(m)


def _to_match(m: re.Match[str]) -> PlaceholderMatch:
    groups = m.groupdict()
    if groups.get("reference") is not None:
        path_group = "ref_angle" if m.group("ref_angle") is not None else "ref_path"
        return PlaceholderMatch(
            start=m.start(),
            end=m.end(),
            shape=PlaceholderShape.REFERENCE,
            caption=m.group("ref_caption"),
            label=normalize_label(m.group("ref_caption")),
            path=m.group(path_group),
            path_span=m.span(path_group),
            size=m.group("ref_size"),
            size_span=m.span("ref_size") if m.group("ref_size") is not None else None,
        )

    caption = m.group("inline_caption")
    if m.group("inline_target") is not None:
        label = None
    else:
        # ![caption], ![caption][] and ![caption][label] resolve through a definition
        label = normalize_label(m.group("inline_label") or caption)
    return PlaceholderMatch(
        start=m.start(),
        end=m.end(),
        shape=PlaceholderShape.INLINE,
        caption=caption,
        label=label,
        size=m.group("inline_size"),
        size_span=m.span("inline_size") if m.group("inline_size") is not None else None,
    )


# -- Link reference definitions ----------------------------------------------

_DEFINITION_RE = re.compile(
    r"^[ ]{0,3}\[(?P<label>[^\]\n]+)\]:[ \t]*"
    r"(?:<(?P<angle>[^>\n]+)>|(?P<bare>[^\s{]+))"
    r"(?:[ \t]*(?P<size>\{" + _SIZE + r"\}))?[ \t]*(?:\n|$)",
    re.MULTILINE,
)


def normalize_label(label: str) -> str:
    """Markdown label matching: case-insensitive, inner whitespace collapsed."""
    return " ".join(label.split()).casefold()


def find_definitions(text: str) -> dict[str, LinkDefinition]:
    """Link reference definitions keyed by normalized label; the first one wins.

    A definition's span covers its whole line, trailing newline included.
    """
    definitions: dict[str, LinkDefinition] = {}
    for m in _DEFINITION_RE.finditer(text):
        label = normalize_label(m.group("label"))
        if label in definitions:
            continue
        path_group = "angle" if m.group("angle") is not None else "bare"
        definitions[label] = LinkDefinition(
            label=label,
            path=m.group(path_group),
            size=m.group("size"),
            start=m.start(),
            end=m.end(),
        )
    return definitions

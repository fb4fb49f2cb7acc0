"""Document-to-markdown converter that shells out to pandoc."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from docxvault.config.models import ConverterConfig
from docxvault.converter.models import ConversionError, ConversionResult

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS: set[str] = {".docx"}

_PANDOC_FLAGS: list[str] = [
    "-f", "docx+styles",
    "-t", "markdown",
    "--wrap=none",
    "--markdown-headings=atx",
    "--reference-links",
    "--strip-comments",
]


def should_convert(file_path: str | Path) -> bool:
    return Path(file_path).suffix.lower() in DOCUMENT_EXTENSIONS


class PandocConverter:
    """Runs pandoc to produce a Markdown file plus a directory of extracted media.

    Pandoc writes images into a ``media/`` subfolder of the extraction directory.
    """

    def __init__(self, config: ConverterConfig) -> None:
        self._config = config

    def build_command(self, source: Path, markdown_path: Path, media_dir: Path) -> list[str]:
        return [
            self._config.pandoc_path,
            str(source),
            "-o", str(markdown_path),
            *_PANDOC_FLAGS,
            f"--extract-media={media_dir}",
            *self._config.extra_args,
        ]

    def convert(self, source: str | Path, markdown_path: str | Path, media_dir: str | Path) -> ConversionResult:
        """Convert ``source`` and return where the outputs landed.

        Raises ConversionError when pandoc is missing, times out, or exits non-zero.
        """
        source = Path(source)
        markdown_path = Path(markdown_path)
        media_dir = Path(media_dir)

        if not source.is_file():
            raise FileNotFoundError(f"File not found: {source}")

        media_dir.mkdir(parents=True, exist_ok=True)
        markdown_path.parent.mkdir(parents=True, exist_ok=True)
        command = self.build_command(source, markdown_path, media_dir)
        logger.debug("Running %s", " ".join(command))

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self._config.timeout,
            )
        except FileNotFoundError as exc:
            raise ConversionError(command, "not found; set converter.pandoc_path") from exc
        except subprocess.TimeoutExpired as exc:
            raise ConversionError(command, f"timed out after {self._config.timeout}s") from exc

        if result.returncode != 0:
            raise ConversionError(command, f"exited {result.returncode}", result.stderr)
        if result.stderr:
            logger.warning("pandoc stderr: %s", result.stderr.strip()[:500])

        logger.info("Converted %s -> %s", source, markdown_path)
        return ConversionResult(
            source_path=str(source),
            markdown_path=str(markdown_path),
            media_dir=str(media_dir),
            stderr=result.stderr,
        )

"""Pydantic models for the document conversion subsystem."""

from __future__ import annotations

from pydantic import BaseModel


class ConversionError(Exception):
    """Wraps converter failures with the command that was run."""

    def __init__(self, command: list[str], reason: str, stderr: str = "") -> None:
        self.command = command
        self.reason = reason
        self.stderr = stderr
        detail = f": {stderr.strip()[:500]}" if stderr.strip() else ""
        super().__init__(f"{command[0]} {reason}{detail}")


class ConversionResult(BaseModel):
    """Result of converting a document to markdown."""

    source_path: str
    markdown_path: str
    media_dir: str
    stderr: str = ""

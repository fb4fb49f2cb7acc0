"""Vault storage capability and its local-filesystem implementation."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"(\d+)")


def natural_key(name: str) -> list[int | str]:
    """Sort key that orders ``image2.png`` before ``image10.png``."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS_RE.split(name)]


@runtime_checkable
class VaultStorage(Protocol):
    """The file operations the importer needs, addressed by vault-relative path."""

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, text: str) -> None: ...

    def list_directory(self, path: str) -> list[str]: ...

    def rename(self, src: str, dst: str) -> None: ...


class FileSystemVault:
    """VaultStorage backed by a directory on local disk.

    Every path is resolved against the vault root and rejected if it escapes it.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser().resolve()

    @property
    def base_path(self) -> str:
        return str(self.root)

    def full_path(self, path: str) -> Path:
        full = (self.root / path).resolve()
        if not full.is_relative_to(self.root):
            raise ValueError(f"Path escapes vault: {path}")
        return full

    def relative_path(self, path: str | Path) -> str:
        """Vault-relative, slash-separated form of an absolute or relative path."""
        full = Path(path).expanduser()
        if not full.is_absolute():
            full = self.root / full
        full = full.resolve()
        if not full.is_relative_to(self.root):
            raise ValueError(f"Path is outside the vault: {path}")
        return full.relative_to(self.root).as_posix()

    def exists(self, path: str) -> bool:
        return self.full_path(path).exists()

    def read_text(self, path: str) -> str:
        return self.full_path(path).read_text(encoding="utf-8")

    def write_text(self, path: str, text: str) -> None:
        full = self.full_path(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_text(text, encoding="utf-8")
        logger.debug("Wrote %s (%d chars)", path, len(text))

    def list_directory(self, path: str) -> list[str]:
        """File names directly inside ``path``, in natural order.

        Raises OSError (FileNotFoundError, NotADirectoryError, PermissionError)
        when the directory cannot be read.
        """
        full = self.full_path(path)
        names = [entry.name for entry in full.iterdir() if entry.is_file()]
        return sorted(names, key=natural_key)

    def rename(self, src: str, dst: str) -> None:
        source = self.full_path(src)
        dest = self.full_path(dst)
        if dest.exists():
            raise FileExistsError(f"Refusing to overwrite {dst}")
        source.rename(dest)
        logger.info("Renamed %s -> %s", src, dst)

    def glob(self, pattern: str) -> list[str]:
        return sorted(
            (p.relative_to(self.root).as_posix() for p in self.root.rglob(pattern) if p.is_file()),
            key=natural_key,
        )

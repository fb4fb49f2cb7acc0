"""Turns absolute media paths into vault-relative, slash-separated link targets."""

from __future__ import annotations

import ntpath
import posixpath
import re
from pathlib import PurePath, PurePosixPath, PureWindowsPath

_WINDOWS_ABS_RE = re.compile(r"^(?:[A-Za-z]:[\\/]|\\\\)")


class PathResolutionError(ValueError):
    """Raised when a path cannot be expressed relative to the root."""

    def __init__(self, path: str, root: str, reason: str) -> None:
        self.path = path
        self.root = root
        self.reason = reason
        super().__init__(f"Cannot resolve {path!r} relative to {root!r}: {reason}")


def is_windows_path(path: str) -> bool:
    return bool(_WINDOWS_ABS_RE.match(path))


def is_absolute_path(path: str) -> bool:
    """True for POSIX (``/x``) and Windows (``C:\\x``, ``C:/x``, UNC) absolute paths."""
    return path.startswith("/") or is_windows_path(path)


def _pure(path: str) -> PurePath:
    # Paths are compared lexically; the engine never touches the filesystem
    if is_windows_path(path):
        return PureWindowsPath(ntpath.normpath(path))
    return PurePosixPath(posixpath.normpath(path))


class PathNormalizer:
    def normalize(self, absolute_path: str, root_path: str) -> str:
        """Return ``absolute_path`` relative to ``root_path`` using ``/`` separators.

        Relative input is returned slash-normalized as is. Raises
        PathResolutionError when the path lies outside the root or on a
        different drive, including paths that escape through ``..``.
        """
        if not absolute_path:
            raise PathResolutionError(absolute_path, root_path, "empty path")
        if not is_absolute_path(absolute_path):
            return absolute_path.replace("\\", "/")
        if not root_path:
            raise PathResolutionError(absolute_path, root_path, "no root to resolve against")

        path = _pure(absolute_path)
        root = _pure(root_path)
        if type(path) is not type(root):
            raise PathResolutionError(absolute_path, root_path, "different filesystem roots")

        try:
            rel = path.relative_to(root)
        except ValueError as exc:
            raise PathResolutionError(absolute_path, root_path, "not under root") from exc

        if ".." in rel.parts:
            raise PathResolutionError(absolute_path, root_path, "escapes root")
        result = rel.as_posix()
        if result == ".":
            raise PathResolutionError(absolute_path, root_path, "path is the root itself")
        return result

"""Shared test fixtures for docxvault."""

from pathlib import Path

import pytest

from docxvault.config.models import DocxVaultConfig
from docxvault.vault import FileSystemVault

GERMAN_CAPTION = "Ein Bild, das Text enthält. Automatisch generierte Beschreibung"
ENGLISH_CAPTION = "A picture containing diagram Description automatically generated"


@pytest.fixture
def sample_config():
    return DocxVaultConfig()


@pytest.fixture
def two_inline_placeholders():
    return (
        "# Report\n\n"
        "Intro paragraph.\n\n"
        f"![{GERMAN_CAPTION}]\n\n"
        "Between the images.\n\n"
        f"![{ENGLISH_CAPTION}]\n\n"
        "Closing paragraph.\n"
    )


@pytest.fixture
def tmp_vault(tmp_path) -> FileSystemVault:
    """An empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return FileSystemVault(root)


@pytest.fixture
def make_media():
    """Create placeholder image files inside a vault-relative media folder."""

    def _make(vault: FileSystemVault, media_dir: str, names: list[str]) -> Path:
        folder = vault.root / media_dir
        folder.mkdir(parents=True, exist_ok=True)
        for name in names:
            (folder / name).write_bytes(b"\x89PNG fake")
        return folder

    return _make

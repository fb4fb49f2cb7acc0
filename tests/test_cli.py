"""Tests for the docxvault CLI commands (convert, clean, find, config)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from docxvault.cli import app
from docxvault.converter import ConversionError, ConversionResult, PandocConverter

runner = CliRunner()

CAPTION = "A picture containing diagram Description automatically generated"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Run every command from an empty directory with no user config."""
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
    return work


@pytest.fixture()
def vault(tmp_path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


def _fake_convert(self, source, markdown_path, media_dir):
    media = Path(media_dir) / "media"
    media.mkdir(parents=True, exist_ok=True)
    (media / "image1.png").write_bytes(b"\x89PNG fake")
    Path(markdown_path).write_text(f"# Doc\n\n![{CAPTION}]\n", encoding="utf-8")
    return ConversionResult(
        source_path=str(source), markdown_path=str(markdown_path), media_dir=str(media_dir)
    )


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_init_creates_file(self, _isolated_config):
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert (_isolated_config / "docxvault.yaml").exists()

    def test_init_refuses_to_overwrite(self, _isolated_config):
        (_isolated_config / "docxvault.yaml").write_text("log_level: info\n")
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_force(self, _isolated_config):
        (_isolated_config / "docxvault.yaml").write_text("log_level: info\n")
        result = runner.invoke(app, ["config", "init", "--force"])
        assert result.exit_code == 0
        assert "caption_markers" in (_isolated_config / "docxvault.yaml").read_text(encoding="utf-8")

    def test_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "media_folder" in result.output
        assert "pandoc_path" in result.output

    def test_invalid_config_exits(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("log_level: loud\n")
        result = runner.invoke(app, ["--config", str(bad), "config", "show"])
        assert result.exit_code == 1
        assert "Invalid config" in result.output


# ---------------------------------------------------------------------------
# clean
# ---------------------------------------------------------------------------


class TestClean:
    def test_clean_rewrites_placeholders(self, vault):
        (vault / "Notes.md").write_text(f"![{CAPTION}]\n", encoding="utf-8")
        media = vault / "media" / "Notes-images" / "media"
        media.mkdir(parents=True)
        (media / "image1.png").write_bytes(b"\x89PNG fake")

        result = runner.invoke(app, ["clean", "Notes.md", "--vault", str(vault)])

        assert result.exit_code == 0, result.output
        assert "Clean Result" in result.output
        text = (vault / "Notes.md").read_text(encoding="utf-8")
        assert text == "![Notes-img1.png](media/Notes-images/media/image1.png)\n"

    def test_dry_run(self, vault):
        original = f"![{CAPTION}]\n"
        (vault / "Notes.md").write_text(original, encoding="utf-8")

        result = runner.invoke(app, ["clean", "Notes.md", "--vault", str(vault), "--dry-run"])

        assert result.exit_code == 0
        assert "dry run" in result.output
        assert (vault / "Notes.md").read_text(encoding="utf-8") == original

    def test_vault_from_config(self, vault, _isolated_config):
        (_isolated_config / "docxvault.yaml").write_text(f"vault_path: {vault.as_posix()}\n")
        (vault / "Notes.md").write_text("nothing here\n", encoding="utf-8")
        result = runner.invoke(app, ["clean", "Notes.md"])
        assert result.exit_code == 0

    def test_missing_vault(self):
        result = runner.invoke(app, ["clean", "Notes.md"])
        assert result.exit_code == 1
        assert "--vault is required" in result.output

    def test_vault_directory_not_found(self, tmp_path):
        result = runner.invoke(app, ["clean", "Notes.md", "--vault", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_file_outside_vault(self, vault, tmp_path):
        outside = tmp_path / "outside.md"
        outside.write_text("x", encoding="utf-8")
        result = runner.invoke(app, ["clean", str(outside), "--vault", str(vault)])
        assert result.exit_code == 1
        assert "Error" in result.output


# ---------------------------------------------------------------------------
# convert
# ---------------------------------------------------------------------------


class TestConvert:
    def test_convert_docx(self, vault, tmp_path):
        source = tmp_path / "Doc.docx"
        source.write_bytes(b"PK fake")

        with patch.object(PandocConverter, "convert", _fake_convert):
            result = runner.invoke(app, ["convert", str(source), "--vault", str(vault)])

        assert result.exit_code == 0, result.output
        assert "Conversion Result" in result.output
        text = (vault / "Doc.md").read_text(encoding="utf-8")
        assert "![Doc-img1.png](media/Doc-images/media/image1.png)" in text

    def test_convert_by_name_in_vault(self, vault):
        (vault / "inbox").mkdir()
        (vault / "inbox" / "Quarterly.docx").write_bytes(b"PK fake")

        with patch.object(PandocConverter, "convert", _fake_convert):
            result = runner.invoke(app, ["convert", "quarterly", "--vault", str(vault)])

        assert result.exit_code == 0, result.output
        assert (vault / "Quarterly.md").exists()

    def test_convert_with_rename(self, vault, tmp_path):
        source = tmp_path / "Doc.docx"
        source.write_bytes(b"PK fake")

        with patch.object(PandocConverter, "convert", _fake_convert):
            result = runner.invoke(
                app, ["convert", str(source), "--vault", str(vault), "--rename-files"]
            )

        assert result.exit_code == 0, result.output
        assert (vault / "media" / "Doc-images" / "media" / "Doc-img1.png").exists()

    def test_no_matching_document(self, vault):
        result = runner.invoke(app, ["convert", "missing", "--vault", str(vault)])
        assert result.exit_code == 1
        assert "No unique .docx" in result.output

    def test_conversion_error(self, vault, tmp_path):
        source = tmp_path / "Doc.docx"
        source.write_bytes(b"PK fake")

        with patch.object(
            PandocConverter, "convert", side_effect=ConversionError(["pandoc"], "exited 2", "bad")
        ):
            result = runner.invoke(app, ["convert", str(source), "--vault", str(vault)])

        assert result.exit_code == 1
        assert "exited 2" in result.output


# ---------------------------------------------------------------------------
# find
# ---------------------------------------------------------------------------


class TestFind:
    def test_lists_documents(self, vault):
        (vault / "Alpha.docx").write_bytes(b"")
        (vault / "Beta.docx").write_bytes(b"")
        result = runner.invoke(app, ["find", "--vault", str(vault)])
        assert result.exit_code == 0
        assert "Alpha.docx" in result.output
        assert "Beta.docx" in result.output

    def test_no_documents(self, vault):
        result = runner.invoke(app, ["find", "zzz", "--vault", str(vault)])
        assert result.exit_code == 0
        assert "No .docx files found" in result.output

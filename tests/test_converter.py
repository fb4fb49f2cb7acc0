"""Tests for the converter subsystem: should_convert, PandocConverter."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from docxvault.config.models import ConverterConfig
from docxvault.converter.converter import PandocConverter, should_convert
from docxvault.converter.models import ConversionError, ConversionResult


# ---------------------------------------------------------------------------
# should_convert
# ---------------------------------------------------------------------------


class TestShouldConvert:
    def test_docx(self):
        assert should_convert("report.docx") is True

    def test_case_insensitive_extension(self):
        assert should_convert("REPORT.DOCX") is True

    def test_other_formats(self):
        assert should_convert("report.doc") is False
        assert should_convert("report.md") is False
        assert should_convert("report") is False


# ---------------------------------------------------------------------------
# PandocConverter
# ---------------------------------------------------------------------------


def _completed(returncode=0, stderr=""):
    proc = MagicMock()
    proc.returncode = returncode
    proc.stderr = stderr
    return proc


class TestPandocConverter:
    def setup_method(self):
        self.config = ConverterConfig(pandoc_path="/usr/bin/pandoc", timeout=30)
        self.converter = PandocConverter(self.config)

    def _source(self, tmp_path: Path) -> Path:
        source = tmp_path / "Report.docx"
        source.write_bytes(b"PK fake docx")
        return source

    def test_build_command(self, tmp_path):
        cmd = self.converter.build_command(
            tmp_path / "Report.docx", tmp_path / "Report.md", tmp_path / "media" / "Report-images"
        )
        assert cmd[0] == "/usr/bin/pandoc"
        assert cmd[1] == str(tmp_path / "Report.docx")
        assert cmd[2:4] == ["-o", str(tmp_path / "Report.md")]
        assert "docx+styles" in cmd
        assert "--wrap=none" in cmd
        assert "--markdown-headings=atx" in cmd
        assert f"--extract-media={tmp_path / 'media' / 'Report-images'}" in cmd

    def test_extra_args_appended(self, tmp_path):
        converter = PandocConverter(ConverterConfig(extra_args=["--toc"]))
        cmd = converter.build_command(tmp_path / "a.docx", tmp_path / "a.md", tmp_path / "m")
        assert cmd[0] == "pandoc"
        assert cmd[-1] == "--toc"

    @patch("docxvault.converter.converter.subprocess.run")
    def test_success(self, mock_run, tmp_path):
        mock_run.return_value = _completed()
        source = self._source(tmp_path)
        media = tmp_path / "media" / "Report-images"

        result = self.converter.convert(source, tmp_path / "Report.md", media)

        assert isinstance(result, ConversionResult)
        assert result.markdown_path == str(tmp_path / "Report.md")
        assert result.media_dir == str(media)
        assert media.is_dir()
        _, kwargs = mock_run.call_args
        assert kwargs["timeout"] == 30
        assert kwargs["capture_output"] is True

    @patch("docxvault.converter.converter.subprocess.run")
    def test_stderr_kept_on_success(self, mock_run, tmp_path):
        mock_run.return_value = _completed(stderr="[WARNING] Could not convert TeX math")
        result = self.converter.convert(self._source(tmp_path), tmp_path / "Report.md", tmp_path / "m")
        assert "TeX math" in result.stderr

    @patch("docxvault.converter.converter.subprocess.run")
    def test_nonzero_exit_raises(self, mock_run, tmp_path):
        mock_run.return_value = _completed(returncode=64, stderr="Unknown input format")
        with pytest.raises(ConversionError) as exc_info:
            self.converter.convert(self._source(tmp_path), tmp_path / "Report.md", tmp_path / "m")
        assert "exited 64" in str(exc_info.value)
        assert exc_info.value.stderr == "Unknown input format"
        assert exc_info.value.command[0] == "/usr/bin/pandoc"

    @patch("docxvault.converter.converter.subprocess.run", side_effect=FileNotFoundError)
    def test_missing_pandoc_raises(self, mock_run, tmp_path):
        with pytest.raises(ConversionError, match="pandoc_path"):
            self.converter.convert(self._source(tmp_path), tmp_path / "Report.md", tmp_path / "m")

    @patch(
        "docxvault.converter.converter.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="pandoc", timeout=30),
    )
    def test_timeout_raises(self, mock_run, tmp_path):
        with pytest.raises(ConversionError, match="timed out after 30s"):
            self.converter.convert(self._source(tmp_path), tmp_path / "Report.md", tmp_path / "m")

    @patch("docxvault.converter.converter.subprocess.run")
    def test_missing_source(self, mock_run, tmp_path):
        with pytest.raises(FileNotFoundError):
            self.converter.convert(tmp_path / "nope.docx", tmp_path / "nope.md", tmp_path / "m")
        mock_run.assert_not_called()

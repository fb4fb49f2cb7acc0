"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DocxVaultConfig

PROJECT_CONFIG = "docxvault.yaml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    paths = [Path(cli_path)] if cli_path else []
    paths.append(Path(".") / PROJECT_CONFIG)
    paths.append(Path.home() / ".docxvault" / "config.yaml")
    return paths


def load_config(cli_path: str | None = None) -> DocxVaultConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    Empty files are skipped. Unreadable YAML or values the schema rejects
    raise ValueError naming the offending file.
    """
    for path in config_search_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_mapping(path)
        if raw is None:
            continue
        try:
            return DocxVaultConfig(**_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e

    return DocxVaultConfig()


def _read_mapping(path: Path) -> dict | None:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")
    return raw


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings; unset variables become empty."""
    if isinstance(obj, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `docxvault config init`
DEFAULT_CONFIG_TEMPLATE = """\
# docxvault.yaml

# Vault root; link targets are written relative to it
vault_path: ""                 # e.g. "${HOME}/Notes"

# Folder (relative to the vault) that receives extracted images
media_folder: "media"

# External converter
converter:
  pandoc_path: "pandoc"        # absolute path if pandoc is not on PATH
  timeout: 120                 # seconds
  extra_args: []

# Caption placeholder reconciliation
reconcile:
  caption_markers:
    - "Automatisch generierte Beschreibung"
    - "Description automatically generated"
    - "Description générée automatiquement"
  raster_extensions: [".bmp", ".gif", ".jpeg", ".jpg", ".png", ".tif", ".tiff", ".webp"]
  not_found_alt: "Image not found"
  keep_size_attributes: false  # re-append {width=... height=...} to links
  normalize_remaining_links: true
  shapes: [inline, reference]

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""

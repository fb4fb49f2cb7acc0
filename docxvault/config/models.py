from pydantic import BaseModel, Field
from typing import Literal

from docxvault.reconcile.inventory import RASTER_EXTENSIONS
from docxvault.reconcile.rewriter import DEFAULT_NOT_FOUND_ALT
from docxvault.reconcile.scanner import DEFAULT_CAPTION_MARKERS


class ConverterConfig(BaseModel):
    pandoc_path: str = "pandoc"
    timeout: int = Field(default=120, gt=0)
    extra_args: list[str] = Field(default_factory=list)


class ReconcileConfig(BaseModel):
    caption_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CAPTION_MARKERS), min_length=1
    )
    raster_extensions: list[str] = Field(default_factory=lambda: sorted(RASTER_EXTENSIONS))
    not_found_alt: str = DEFAULT_NOT_FOUND_ALT
    keep_size_attributes: bool = False
    normalize_remaining_links: bool = True
    shapes: list[Literal["inline", "reference"]] = Field(
        default_factory=lambda: ["inline", "reference"], min_length=1
    )


class DocxVaultConfig(BaseModel):
    vault_path: str = ""
    media_folder: str = "media"
    converter: ConverterConfig = Field(default_factory=ConverterConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

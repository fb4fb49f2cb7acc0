"""Document conversion subsystem: wraps the pandoc command line."""

from docxvault.converter.converter import (
    DOCUMENT_EXTENSIONS,
    PandocConverter,
    should_convert,
)
from docxvault.converter.models import ConversionError, ConversionResult

__all__ = [
    "ConversionError",
    "ConversionResult",
    "DOCUMENT_EXTENSIONS",
    "PandocConverter",
    "should_convert",
]

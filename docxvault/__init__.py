"""docxvault - Word-to-Markdown import for Obsidian vaults with image link repair."""

from docxvault.config import DocxVaultConfig, load_config
from docxvault.converter import PandocConverter
from docxvault.importer import DocumentImporter
from docxvault.reconcile import ReconciliationPipeline, reconcile
from docxvault.vault import FileSystemVault, VaultStorage

__version__ = "0.1.0"

__all__ = [
    "DocumentImporter",
    "DocxVaultConfig",
    "FileSystemVault",
    "PandocConverter",
    "ReconciliationPipeline",
    "VaultStorage",
    "load_config",
    "reconcile",
]

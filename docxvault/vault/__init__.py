"""Vault access, the only place the importer touches the filesystem."""

from .storage import FileSystemVault, VaultStorage, natural_key

__all__ = ["FileSystemVault", "VaultStorage", "natural_key"]

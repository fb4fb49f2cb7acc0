"""DocumentImporter converts Word documents into a vault and cleans their Markdown."""

from __future__ import annotations

import logging
import time
from pathlib import Path, PurePosixPath

from docxvault.config.models import DocxVaultConfig
from docxvault.converter import PandocConverter, should_convert
from docxvault.models import ImportReport
from docxvault.reconcile import PathNormalizer, ReconciliationPipeline
from docxvault.reconcile.rewriter import join_media_path
from docxvault.vault import FileSystemVault, VaultStorage

logger = logging.getLogger(__name__)


def find_documents(vault: FileSystemVault, query: str = "") -> list[str]:
    """Vault-relative paths of .docx files whose name contains ``query`` (case-insensitive)."""
    needle = query.lower()
    return [p for p in vault.glob("*.docx") if needle in PurePosixPath(p).name.lower()]


def choose_document(vault: FileSystemVault, query: str) -> str | None:
    """The single .docx matching ``query``, or None when there is no unique match."""
    matches = find_documents(vault, query)
    if len(matches) == 1:
        return matches[0]
    return None


class DocumentImporter:
    def __init__(
        self,
        vault: VaultStorage,
        root_path: str,
        config: DocxVaultConfig,
        converter: PandocConverter | None = None,
    ) -> None:
        """
        Args:
            vault: storage used for every read, write and listing
            root_path: absolute vault root that link targets are made relative to
            config: resolved configuration
            converter: pandoc wrapper; built from config when omitted
        """
        self.vault = vault
        self.root_path = root_path
        self.config = config
        self.converter = converter or PandocConverter(config.converter)
        self._normalizer = PathNormalizer()

    @classmethod
    def for_directory(cls, vault_path: str | Path, config: DocxVaultConfig) -> DocumentImporter:
        vault = FileSystemVault(vault_path)
        return cls(vault, vault.base_path, config)

    # -- Public API ----------------------------------------------------------

    def extraction_dir(self, base_name: str) -> str:
        """Vault-relative directory handed to pandoc's --extract-media."""
        return join_media_path(self.config.media_folder, f"{base_name}-images")

    def media_dir(self, base_name: str) -> str:
        return f"{self.extraction_dir(base_name)}/media"

    def convert(self, source: str | Path, *, rename_files: bool = False) -> ImportReport:
        """Convert a .docx into ``<vault>/<name>.md`` and reconcile its images."""
        source = Path(source)
        if not should_convert(source):
            raise ValueError(f"Not a .docx file: {source}")

        start = time.monotonic()
        base_name = source.stem
        markdown_rel = f"{base_name}.md"
        root = Path(self.root_path)
        self.converter.convert(source, root / markdown_rel, root / self.extraction_dir(base_name))

        report = self._reconcile(markdown_rel, base_name, self.media_dir(base_name), rename_files, dry_run=False)
        report.duration = time.monotonic() - start
        return report

    def clean(
        self,
        markdown_path: str,
        *,
        media_dir: str | None = None,
        rename_files: bool = False,
        dry_run: bool = False,
    ) -> ImportReport:
        """Reconcile an existing Markdown file in the vault."""
        if not markdown_path.lower().endswith(".md"):
            raise ValueError(f"Not a Markdown file: {markdown_path}")

        start = time.monotonic()
        markdown_rel = self._normalizer.normalize(markdown_path, self.root_path)
        base_name = PurePosixPath(markdown_rel).stem
        relative_media_dir = media_dir or self.media_dir(base_name)

        report = self._reconcile(markdown_rel, base_name, relative_media_dir, rename_files, dry_run=dry_run)
        report.duration = time.monotonic() - start
        return report

    # -- Internals -----------------------------------------------------------

    def _pipeline(self, link_to_new_names: bool) -> ReconciliationPipeline:
        return ReconciliationPipeline.from_config(
            self.config.reconcile, link_to_new_names=link_to_new_names
        )

    def _list_media(self, relative_media_dir: str) -> list[str] | None:
        try:
            return self.vault.list_directory(relative_media_dir)
        except OSError as exc:
            logger.warning("Couldn't read media folder %s: %s", relative_media_dir, exc)
            return None

    def _reconcile(
        self,
        markdown_rel: str,
        base_name: str,
        relative_media_dir: str,
        rename_files: bool,
        *,
        dry_run: bool,
    ) -> ImportReport:
        text = self.vault.read_text(markdown_rel)
        listing = self._list_media(relative_media_dir)
        rename = rename_files and not dry_run

        result = self._pipeline(rename).reconcile(
            text, listing, base_name, relative_media_dir, self.root_path
        )
        renames = result.report.renames

        if rename:
            # Check every destination first so a collision leaves the vault untouched
            existing = set(listing or [])
            for r in renames:
                if r.new_name in existing and r.new_name != r.original_name:
                    raise ValueError(f"Cannot rename {r.original_name}: {r.new_name} already exists")

        if not dry_run:
            moves = [
                (
                    join_media_path(relative_media_dir, r.original_name),
                    join_media_path(relative_media_dir, r.new_name),
                )
                for r in renames
                if rename and r.new_name != r.original_name
            ]
            self._apply(markdown_rel, text, result.rewritten_text, moves)
            logger.info(
                "Reconciled %s: %d linked, %d not found, %d unused",
                markdown_rel,
                len(renames),
                result.report.unresolved_placeholder_count,
                result.report.unused_asset_count,
            )

        return ImportReport(
            markdown_path=markdown_rel,
            media_dir=relative_media_dir,
            reconciliation=result.report,
            renamed_files=list(renames) if rename else [],
            written=not dry_run,
        )

    def _apply(self, markdown_rel: str, original: str, rewritten: str, moves: list[tuple[str, str]]) -> None:
        """Rename media files and write the Markdown, or leave the vault as it was.

        The document is written first. On any failure the applied renames are
        undone in reverse order and the original text is restored before the
        error propagates.
        """
        done: list[tuple[str, str]] = []
        self.vault.write_text(markdown_rel, rewritten)
        try:
            for src, dst in moves:
                self.vault.rename(src, dst)
                done.append((src, dst))
        except Exception:
            logger.error(
                "Rename failed after %d of %d file(s); rolling back %s", len(done), len(moves), markdown_rel
            )
            for src, dst in reversed(done):
                self.vault.rename(dst, src)
            self.vault.write_text(markdown_rel, original)
            raise

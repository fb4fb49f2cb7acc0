"""CLI entry point for docxvault."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from docxvault.config import DocxVaultConfig, load_config
from docxvault.config.loader import DEFAULT_CONFIG_TEMPLATE, PROJECT_CONFIG
from docxvault.converter import ConversionError
from docxvault.importer import DocumentImporter, choose_document, find_documents
from docxvault.models import ImportReport
from docxvault.vault import FileSystemVault

app = typer.Typer(
    name="docxvault",
    help="Convert Word documents into an Obsidian vault and repair their image links.",
)

config_app = typer.Typer(help="Manage docxvault configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: DocxVaultConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _configure_logging(cfg: DocxVaultConfig) -> None:
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
        )
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler], force=True)


def _get_config() -> DocxVaultConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to docxvault.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _resolve_vault(vault: str, cfg: DocxVaultConfig) -> FileSystemVault:
    vault_path = vault or cfg.vault_path
    if not vault_path:
        rprint("[red]Error:[/red] --vault is required or set vault_path in config")
        raise typer.Exit(1)
    if not Path(vault_path).expanduser().is_dir():
        rprint(f"[red]Error:[/red] Vault directory not found: {vault_path}")
        raise typer.Exit(1)
    return FileSystemVault(vault_path)


def _display_report(report: ImportReport, title: str) -> None:
    rec = report.reconciliation
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Markdown", report.markdown_path)
    table.add_row("Media folder", report.media_dir)
    table.add_row("Images linked", str(len(rec.renames)))
    table.add_row("Not found", str(rec.unresolved_placeholder_count))
    table.add_row("Unused images", str(rec.unused_asset_count))
    table.add_row("Paths normalized", str(rec.normalized_link_count))
    table.add_row("Duration", f"{report.duration:.2f}s")
    rprint(table)

    if rec.renames:
        renames = Table(title="Renamed" if report.renamed_files else "Image names")
        renames.add_column("Original", style="cyan")
        renames.add_column("New name", style="green")
        for r in rec.renames:
            renames.add_row(r.original_name, r.new_name)
        rprint(renames)

    for warn in rec.warnings:
        rprint(f"  [yellow]warn:[/yellow] {warn.kind}: {warn.message}")
    if not report.written:
        rprint("[yellow](dry run, nothing written)[/yellow]")


@app.command()
def convert(
    file: str = typer.Argument(..., help="Path to a .docx file, or a name to look up in the vault"),
    vault: Annotated[str, typer.Option("--vault", "-v", help="Path to Obsidian vault")] = "",
    rename_files: Annotated[
        bool, typer.Option("--rename-files", help="Rename extracted images to <name>-imgN")
    ] = False,
) -> None:
    """Convert a Word document to Markdown inside the vault."""
    cfg = _get_config()
    fs_vault = _resolve_vault(vault, cfg)

    source = Path(file).expanduser()
    if not source.is_file():
        chosen = choose_document(fs_vault, file)
        if chosen is None:
            rprint(f"[red]Error:[/red] No unique .docx matching '{file}'")
            raise typer.Exit(1)
        source = fs_vault.full_path(chosen)

    rprint(f"[bold]Converting[/bold] {source.name} (pandoc: {cfg.converter.pandoc_path})...")
    importer = DocumentImporter(fs_vault, fs_vault.base_path, cfg)
    try:
        report = importer.convert(source, rename_files=rename_files)
    except (ValueError, ConversionError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _display_report(report, "Conversion Result")


@app.command()
def clean(
    file: str = typer.Argument(..., help="Markdown file in the vault"),
    vault: Annotated[str, typer.Option("--vault", "-v", help="Path to Obsidian vault")] = "",
    media_dir: Annotated[
        str | None, typer.Option("--media-dir", "-m", help="Media folder relative to the vault")
    ] = None,
    rename_files: Annotated[
        bool, typer.Option("--rename-files", help="Rename linked images to <name>-imgN")
    ] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Report without writing")] = False,
) -> None:
    """Replace auto-generated image descriptions with real image links."""
    cfg = _get_config()
    fs_vault = _resolve_vault(vault, cfg)

    target = Path(file).expanduser()
    markdown_path = str(target.resolve()) if target.exists() else file

    importer = DocumentImporter(fs_vault, fs_vault.base_path, cfg)
    try:
        report = importer.clean(
            markdown_path, media_dir=media_dir, rename_files=rename_files, dry_run=dry_run
        )
    except (ValueError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _display_report(report, "Clean Result")


@app.command()
def find(
    query: str = typer.Argument("", help="Case-insensitive part of the file name"),
    vault: Annotated[str, typer.Option("--vault", "-v", help="Path to Obsidian vault")] = "",
) -> None:
    """List Word documents in the vault."""
    cfg = _get_config()
    fs_vault = _resolve_vault(vault, cfg)

    docs = find_documents(fs_vault, query)
    if not docs:
        rprint("[yellow]No .docx files found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Documents ({len(docs)})")
    table.add_column("Path", style="cyan")
    for doc in docs:
        table.add_row(doc)
    rprint(table)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False, allow_unicode=True), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default docxvault.yaml in current directory."""
    target = Path(PROJECT_CONFIG)
    if target.exists() and not force:
        rprint(f"[yellow]{target} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    rprint(Panel(f"[green]Created[/green] {target}", border_style="green"))

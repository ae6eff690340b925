"""qiniu-artifacts CLI - Typer-based operator commands."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from qiniu_artifacts.config.settings import SettingsFile, StoreSettings
from qiniu_artifacts.core.discovery import DomainDiscovery
from qiniu_artifacts.core.registry import get_registry
from qiniu_artifacts.exceptions import QiniuArtifactsError
from qiniu_artifacts.observability import enable_structured_logging
from qiniu_artifacts.store import StoreConfigurator

app = typer.Typer(
    name="qiniu-artifacts",
    help="Configure the Qiniu artifact storage backend",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit structured JSON events on stderr"),
):
    """Configure the Qiniu artifact storage backend."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if json_logs:
        enable_structured_logging()


def _settings_file(config: Optional[Path]) -> SettingsFile:
    settings_file = SettingsFile(path=config)
    if not settings_file.exists():
        console.print(f"[red]Error: settings file {settings_file.path} not found[/red]")
        raise typer.Exit(code=1)
    return settings_file


@app.command()
def check(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings file"),
):
    """Run every field check against the stored settings."""
    settings_file = _settings_file(config)
    store = StoreConfigurator(settings_file)

    table = Table(title=f"Field checks: {settings_file.path}")
    table.add_column("Field", style="cyan")
    table.add_column("Status")
    table.add_column("Message")

    try:
        record = settings_file.load()
    except QiniuArtifactsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    results = store.check_all(record)
    for result in results:
        status = "[green]ok[/green]" if result.ok else "[red]error[/red]"
        table.add_row(result.field, status, escape(result.message))
    console.print(table)

    if not all(result.ok for result in results):
        raise typer.Exit(code=1)


@app.command()
def configure(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings file"),
):
    """Validate the stored settings, fill the download domain and activate the backend."""
    settings_file = _settings_file(config)
    store = StoreConfigurator(settings_file, registry=get_registry())

    try:
        backend = store.configure(settings_file.load())
    except QiniuArtifactsError as e:
        console.print(f"[red]✗ Configuration failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓ Backend configured[/green]\n")
    console.print(f"Access key:      {backend.access_key}")
    console.print(f"Bucket:          {backend.bucket_name}")
    console.print(f"Download domain: {backend.download_domain}")
    console.print(f"Object prefix:   {backend.object_name_prefix or '(none)'}")
    console.print(f"API / RS / UC:   {backend.api_domain} / {backend.rs_domain} / {backend.uc_domain}")
    console.print(f"HTTPS:           {backend.use_https}")


@app.command()
def domains(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings file"),
):
    """List the domains bound to the configured bucket."""
    settings_file = _settings_file(config)

    try:
        settings = StoreSettings.from_record(settings_file.load())
        bound = DomainDiscovery().list_domains(settings.credentials(), settings.endpoints())
    except QiniuArtifactsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if not bound:
        console.print(f"[yellow]Bucket {settings.bucket_name} has no bound domains[/yellow]")
        return

    for position, domain in enumerate(bound):
        marker = "  [green](selected when download_domain is empty)[/green]" if position == len(bound) - 1 else ""
        console.print(f"  {domain}{marker}")


if __name__ == "__main__":
    app()

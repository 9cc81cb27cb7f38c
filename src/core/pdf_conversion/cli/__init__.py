from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import AppConfig, dump_config, load_config
from ..core import ConversionService
from ..detection import detect
from ..logging import configure_logging
from ..models import ConversionResult

console = Console()

app = typer.Typer(help="Document-to-PDF conversion toolkit")

ConfigOption = typer.Option(None, "--config", help="Path to config.toml")
OutputNameOption = typer.Option(None, "--output-name", "-o", help="Base name of the produced PDF")


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path)


def _service(config: Path | None, verbose: bool = False) -> ConversionService:
    configure_logging("DEBUG" if verbose else "WARNING")
    return ConversionService(_load_config(config))


def _report(result: ConversionResult) -> None:
    if not result.success:
        console.print(f"[red]{result.error_message}[/red]: {result.error_detail or '-'}")
        raise typer.Exit(1)
    console.print(
        f"[green]Success[/green]: {result.output_path} "
        f"({result.size_bytes} bytes in {result.duration_s:.2f}s)"
    )


@app.command()
def convert(
    file: Path,
    output_name: str | None = OutputNameOption,
    config: Path | None = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Convert a file from the input directory."""

    _report(_service(config, verbose).convert_file(file, output_name))


@app.command()
def upload(
    file: Path,
    output_name: str | None = OutputNameOption,
    config: Path | None = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Convert any local file as if it had been uploaded."""

    if not file.is_file():
        console.print(f"[red]File not found[/red]: {file}")
        raise typer.Exit(1)
    service = _service(config, verbose)
    _report(service.convert_upload(file.name, file.read_bytes(), output_name))


@app.command()
def url(
    address: str,
    output_name: str | None = OutputNameOption,
    config: Path | None = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Download an HTML page and convert it."""

    _report(_service(config, verbose).convert_url(address, output_name))


@app.command("bytes")
def convert_bytes(
    file: Path,
    destination: Path | None = typer.Option(
        None, "--destination", "-d", help="Where to write the PDF (defaults to the current directory)"
    ),
    name_hint: str | None = typer.Option(
        None, "--name-hint", help="Original file name used when sniffing fails"
    ),
    output_name: str | None = OutputNameOption,
    config: Path | None = ConfigOption,
) -> None:
    """Round-trip a file through the in-memory conversion."""

    service = _service(config)
    result = service.convert_bytes(file.read_bytes(), name_hint, output_name)
    if not result.success:
        console.print(f"[red]{result.error_message}[/red]: {result.error_detail or '-'}")
        raise typer.Exit(1)
    target = destination or Path.cwd() / result.output_file_name
    target.write_bytes(result.pdf_bytes)
    console.print(
        f"[green]Success[/green]: {target} ({result.detected_type}, {result.pdf_size_bytes} bytes)"
    )


@app.command()
def merge(
    files: list[str],
    output_name: str | None = OutputNameOption,
    config: Path | None = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Merge input-directory files, in order, into one PDF."""

    result = _service(config, verbose).merge_files(files, output_name)
    table = Table(title="Merge summary")
    table.add_column("File")
    table.add_column("Status")
    for name in result.successful_files:
        table.add_row(name, "[green]merged[/green]")
    for failure in result.failed_files:
        table.add_row(failure.file_name, f"[red]{failure.error_message}[/red]")
    console.print(table)
    if not result.success:
        console.print(f"[red]{result.error_message}[/red]: {result.error_detail or '-'}")
        raise typer.Exit(1)
    console.print(
        f"Merged {result.files_processed}/{result.total_files} files "
        f"({result.page_count} pages) into {result.output_path}"
    )


@app.command("detect")
def detect_type(file: Path) -> None:
    """Sniff a file's type from its content."""

    found = detect(file.read_bytes(), file.name)
    if found is None:
        console.print("[yellow]Could not detect file type[/yellow]")
        raise typer.Exit(1)
    console.print(f"{found.extension} (from {found.source.value})")


@app.command()
def validate(file: Path, config: Path | None = ConfigOption) -> None:
    """Run the path checks a conversion would run."""

    outcome = _service(config).validate_file(file)
    if outcome:
        console.print("[green]File is valid[/green]")
        return
    console.print(f"[red]{outcome.code}[/red]: {outcome.reason}")
    raise typer.Exit(1)


@app.command()
def settings(config: Path | None = ConfigOption) -> None:
    """Show the effective configuration and backend readiness."""

    service = _service(config)
    console.print_json(dump_config(service.config))
    console.print_json(json.dumps(service.backend_status()))


if __name__ == "__main__":
    app()

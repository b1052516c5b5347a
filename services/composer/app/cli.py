"""Command line entrypoint: compile descriptions and validate blueprint files offline."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import get_settings
from .domain.catalog import get_catalog, load_catalog
from .domain.compiler import BlueprintCompiler
from .domain.errors import BlueprintValidationError, CatalogLoadError
from .domain.report import build_composition_report
from .domain.resolver import CatalogResolver
from .domain.types import Blueprint
from .domain.validator import validate
from .observability.logging import configure_logging

app = typer.Typer(
    name="blueprint-composer",
    help="Compile plain-language automation descriptions into scenario blueprints.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Emit info-level structured logs")] = False,
) -> None:
    configure_logging("INFO" if verbose else "WARNING")


def _print_errors(title: str, errors: list[str]) -> None:
    err_console.print(f"[red]✗[/red] {escape(title)}")
    for error in errors:
        err_console.print(f"  [red]•[/red] {escape(error)}")


@app.command()
def compose(
    description: Annotated[str, typer.Argument(help="Plain-language automation description")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Scenario name")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write the blueprint JSON here")] = None,
    catalog_path: Annotated[
        Optional[Path], typer.Option("--catalog", help="Module catalog JSON (defaults to the bundled one)")
    ] = None,
) -> None:
    """Compile DESCRIPTION into a blueprint."""
    try:
        catalog = load_catalog(catalog_path) if catalog_path else get_catalog()
    except CatalogLoadError as exc:
        _print_errors("Catalog could not be loaded", [str(exc)])
        raise typer.Exit(1)

    tuning = get_settings().tuning
    compiler = BlueprintCompiler(CatalogResolver(catalog, sleep_seconds=tuning.sleep_seconds), tuning)
    try:
        result = compiler.compile(description, name=name)
    except BlueprintValidationError as exc:
        _print_errors("Blueprint rejected", exc.errors)
        raise typer.Exit(1)

    document = json.dumps(result.blueprint.to_dict(), indent=2)
    if output is None:
        typer.echo(document)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(document + "\n", encoding="utf-8")
    report = build_composition_report("-", result.blueprint, result.resolutions, catalog.version)
    table = Table(title=result.blueprint.name, show_header=True)
    table.add_column("ID", justify="right")
    table.add_column("Module")
    table.add_column("Version", justify="right")
    for node in result.blueprint.nodes:
        table.add_row(str(node.id), node.module_type, str(node.version))
    console.print(table)
    if report["fallbacks"]:
        console.print(f"[yellow]Fallback modules:[/yellow] {', '.join(f['module'] for f in report['fallbacks'])}")
    if report["placeholders"]:
        console.print(f"[dim]Placeholders to fill: {', '.join(report['placeholders'])}[/dim]")
    console.print(f"[green]✓[/green] Wrote {output}")


@app.command("validate")
def validate_file(
    path: Annotated[Path, typer.Argument(help="Blueprint JSON file")],
) -> None:
    """Validate a blueprint JSON file."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _print_errors(f"Cannot read {path}", [str(exc)])
        raise typer.Exit(1)

    try:
        blueprint = Blueprint.from_dict(payload)
    except (ValueError, TypeError, AttributeError) as exc:
        _print_errors("Malformed blueprint", [str(exc)])
        raise typer.Exit(1)

    report = validate(blueprint)
    if not report.valid:
        _print_errors("Blueprint is invalid", list(report.errors))
        raise typer.Exit(1)
    console.print(
        f"[green]✓[/green] {escape(blueprint.name or path.name)}: "
        f"{len(blueprint.nodes)} modules, {len(blueprint.connections)} connections"
    )


if __name__ == "__main__":
    app()

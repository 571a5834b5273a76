"""CLI interface for umldot using Typer framework."""

import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from umldot import __description__, __version__
from umldot.config import Options, UmlConfig, load_config
from umldot.diagnostics import DiagnosticCollector
from umldot.models.declarations import SymbolTable, load_symbols
from umldot.pipeline import (
    ViewConfigurationError,
    build_options,
    generate_context_diagrams,
    generate_package_diagrams,
    run,
)
from umldot.text import tokenize

app = typer.Typer(
    name="umldot",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"umldot version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """umldot - UML class diagrams as Graphviz dot."""


def _configure_logging(config: UmlConfig) -> None:
    logging.basicConfig(
        level=config.logging.level.level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(symbols_path: Path, config_path: Optional[Path]) -> tuple[UmlConfig, SymbolTable]:
    """Load configuration and symbol table, exiting with a message on failure."""
    try:
        config = load_config(config_path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(config)

    try:
        symbols = load_symbols(symbols_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    return config, symbols


def _apply_overrides(options: Options, overrides: Optional[List[str]]) -> None:
    for override in overrides or []:
        try:
            options.set_option(tokenize(override))
        except ValueError as e:
            console.print(f"[red]Error:[/red] Invalid option '{override}': {e}")
            raise typer.Exit(1)


def _finish(config: UmlConfig, diagnostics: DiagnosticCollector, out_dir: Path) -> None:
    """Report collected diagnostics and exit non-zero if any diagram failed."""
    counts = diagnostics.counts()
    if counts["warning"]:
        console.print(f"[yellow]Warnings:[/yellow] {counts['warning']}")
    if counts["error"]:
        console.print(f"[red]Errors:[/red] {counts['error']}")
    if config.output.diagnostics:
        summary = diagnostics.flush(out_dir)
        if summary:
            console.print(f"[dim]Diagnostics written to {summary}[/dim]")
    if diagnostics.has_errors():
        raise typer.Exit(1)


@app.command()
def render(
    symbols: Annotated[
        Path,
        typer.Argument(help="Symbol table JSON produced by the source parser")
    ],
    out: Annotated[
        Optional[str],
        typer.Option("--out", "-o", help="Output file name, '-' for stdout (default: graph.dot)")
    ] = None,
    directory: Annotated[
        Optional[Path],
        typer.Option("--dir", "-d", help="Output directory")
    ] = None,
    view: Annotated[
        Optional[str],
        typer.Option("--view", help="Render only this view class")
    ] = None,
    find_views: Annotated[
        bool,
        typer.Option("--find-views", help="Render every view declared in the sources")
    ] = False,
    option: Annotated[
        Optional[List[str]],
        typer.Option("--option", "-O", help="Extra option in @opt form, e.g. 'showAttributes' or 'hide .*Test'")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .umldot.json)")
    ] = None,
) -> None:
    """Render the class diagram, or one diagram per view."""
    uml_config, table = _load(symbols, config)
    diagnostics = DiagnosticCollector(command="render")

    base = uml_config.options.clone()
    _apply_overrides(base, option)
    if out is not None:
        base.output_file_name = out
    if directory is not None:
        base.output_directory = str(directory)
    if view is not None:
        base.view_name = view
    if find_views:
        base.find_views = True

    options, note_options = build_options(table, base, uml_config.note_options, diagnostics)
    if options.output_directory is None and uml_config.output.dir != ".":
        options.output_directory = uml_config.output.dir

    try:
        written = run(table, options, note_options, diagnostics=diagnostics)
    except ViewConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if options.output_file_name != "-":
        console.print(f"[green]OK[/green] {written} diagram(s) written")
    _finish(uml_config, diagnostics, Path(options.output_directory or uml_config.output.dir))


@app.command()
def docs(
    symbols: Annotated[
        Path,
        typer.Argument(help="Symbol table JSON produced by the source parser")
    ],
    out_dir: Annotated[
        Optional[Path],
        typer.Option("--out-dir", "-o", help="Documentation root (default: output.dir from config)")
    ] = None,
    packages: Annotated[
        bool,
        typer.Option("--packages/--no-packages", help="Generate package diagrams")
    ] = True,
    classes: Annotated[
        bool,
        typer.Option("--classes/--no-classes", help="Generate class context diagrams")
    ] = True,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .umldot.json)")
    ] = None,
) -> None:
    """Generate package and class context diagrams for a documentation tree."""
    uml_config, table = _load(symbols, config)
    diagnostics = DiagnosticCollector(command="docs")
    target = out_dir or Path(uml_config.output.dir)

    options, note_options = build_options(table, uml_config.options, uml_config.note_options, diagnostics)

    written = []
    if packages:
        console.print("[dim]Generating package diagrams...[/dim]")
        written += generate_package_diagrams(table, options, target, note_options, diagnostics)
    if classes:
        console.print("[dim]Generating context diagrams...[/dim]")
        written += generate_context_diagrams(table, options, target, note_options, diagnostics)

    console.print(f"[green]OK[/green] {len(written)} diagram(s) written to {target}")
    _finish(uml_config, diagnostics, target)


@app.command()
def views(
    symbols: Annotated[
        Path,
        typer.Argument(help="Symbol table JSON produced by the source parser")
    ],
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .umldot.json)")
    ] = None,
) -> None:
    """List the views declared in the sources."""
    _, table = _load(symbols, config)
    declared = table.views()
    if not declared:
        console.print("[yellow]No views found[/yellow]")
        return

    listing = Table(title="Views")
    listing.add_column("View", style="cyan")
    listing.add_column("Parent", style="dim")
    listing.add_column("Abstract")
    listing.add_column("Options", justify="right")
    for decl in declared:
        parent = table.get(decl.superclass.name) if decl.superclass else None
        listing.add_row(
            decl.qualified_name,
            parent.qualified_name if parent is not None and parent.has_tag("view") else "",
            "yes" if decl.is_abstract else "",
            str(len(decl.find_tags("opt"))),
        )
    console.print(listing)


if __name__ == "__main__":
    app()

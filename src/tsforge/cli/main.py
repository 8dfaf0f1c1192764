"""
tsforge CLI - Main entry point.

Provides commands for assembling code-member models into TypeScript files and
for running the protoc plugin.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tsforge.assembler.orchestrator import AssembledFile, FileAssembler
from tsforge.config.loader import (
    ConfigurationError,
    generate_default_config,
    load_config_from_yaml,
)
from tsforge.config.models import TsForgeConfig
from tsforge.members.declarations import load_generated_files

app = typer.Typer(
    name="tsforge",
    help="Assemble TypeScript files from code-member models, resolving import collisions",
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def validate_path(path: str, must_exist: bool = True) -> Path:
    """Validate and return a Path object."""
    p = Path(path)
    if must_exist and not p.exists():
        raise typer.BadParameter(f"Path does not exist: {path}")
    return p


def write_assembled_files(results: list[AssembledFile], output_dir: Path) -> list[Path]:
    """Write each assembled file under ``output_dir``, creating directories as needed."""
    written = []
    for result in results:
        target = output_dir / result.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(result.content)
        written.append(target)
    return written


# =============================================================================
# Commands
# =============================================================================


@app.command()
def assemble(
    models: list[str] = typer.Argument(..., help="JSON or YAML code-member model files"),
    output: str = typer.Option("./generated", "--output", "-o", help="Output directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Files assembled in parallel"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the assembled files instead of writing them"),
    show_renames: bool = typer.Option(False, "--show-renames", help="Show the rename table of every file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Assemble code-member models into TypeScript files.

    Examples:
        tsforge assemble models/service.yaml -o ./src/generated
        tsforge assemble a.json b.json --dry-run --show-renames
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")

    try:
        if config:
            console.print(f"[cyan]Loading configuration from {config}...[/cyan]")
            cfg = load_config_from_yaml(Path(config))
        else:
            cfg = TsForgeConfig()

        files = []
        for model in models:
            files.extend(load_generated_files(validate_path(model)))

        if not files:
            console.print("[yellow]No files to assemble.[/yellow]")
            return

        console.print(f"[cyan]Assembling {len(files)} files...[/cyan]")
        results = FileAssembler(cfg.assembly).assemble_all(files, workers=workers)

        if show_renames:
            display_renames(results)

        if dry_run:
            for result in results:
                console.print(Panel(result.content, title=result.path, border_style="cyan"))
            return

        written = write_assembled_files(results, Path(output))
        display_summary(results)
        console.print(f"\n[bold green]Wrote {len(written)} files to {output}[/bold green]")

    except typer.BadParameter:
        raise
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


@app.command()
def plugin():
    """
    Run as a protoc plugin (reads a CodeGeneratorRequest from stdin).

    Normally invoked by protoc through the protoc-gen-tsforge script.
    """
    from tsforge.plugin.main import run_plugin

    logging.basicConfig(level=logging.WARNING, format="%(name)s: %(message)s", stream=sys.stderr)
    code = run_plugin(sys.stdin.buffer, sys.stdout.buffer, sys.stderr)
    if code:
        raise typer.Exit(code)


@app.command("init-config")
def init_config(
    output: str = typer.Option("./tsforge.yaml", "--output", "-o", help="Output path for config file"),
):
    """
    Generate a default configuration file.

    Creates a tsforge.yaml with the default plugin and assembly settings.
    """
    output_path = Path(output)

    if output_path.exists():
        if not typer.confirm(f"{output} already exists. Overwrite?"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Abort()

    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Generated configuration file: {output}")


# =============================================================================
# Helper Display Functions
# =============================================================================


def display_summary(results: list[AssembledFile]):
    """Show one row per assembled file."""
    table = Table(title="Assembled Files")
    table.add_column("File", style="cyan")
    table.add_column("Imports", justify="right")
    table.add_column("Renames", justify="right")

    for result in results:
        table.add_row(result.path, str(len(result.imports)), str(len(result.renames)))

    console.print(table)


def display_renames(results: list[AssembledFile]):
    """Show every rename the resolver made."""
    table = Table(title="Renamed Imports")
    table.add_column("File", style="cyan")
    table.add_column("Symbol")
    table.add_column("Module")
    table.add_column("Alias", style="yellow")

    for result in results:
        for entry in result.renames:
            table.add_row(
                result.path,
                entry.reference.display_name,
                entry.reference.module_path,
                entry.alias,
            )

    if table.row_count:
        console.print(table)
    else:
        console.print("[green]No renames needed.[/green]")


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()

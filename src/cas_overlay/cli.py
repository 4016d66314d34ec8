"""CLI for CAS Overlay."""

import functools
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import CONFIG_FILE, __version__
from .config import (
    FEATURES,
    create_default_config,
    get_config_path,
    load_config,
    resources_path,
    save_config,
)
from .dependencies import boot_settings, declare_dependencies, declare_repositories
from .errors import CasOverlayError
from .keys import format_properties, generate_keys
from .logging_utils import setup_logging
from .reconcile import ReconcileStats, run_clean_resources, run_copy_resources

console = Console()
error_console = Console(stderr=True)


def get_project_root() -> Path:
    """Get the project root directory (current working directory)."""
    return Path.cwd()


def handle_errors(func):
    """Report expected failures on stderr and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (CasOverlayError, OSError) as e:
            error_console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

    return wrapper


@click.group()
@click.version_option(version=__version__, prog_name="cas")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """CAS Overlay - build wiring and resource tasks for Apereo CAS."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging("DEBUG" if verbose else None, console=error_console)


@main.command()
@click.option("--cas-version", "cas_version", default=None, help="CAS server version")
@click.option("--feature", "features", multiple=True, help="Feature module to enable (repeatable)")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@handle_errors
def init(cas_version: str | None, features: tuple[str, ...], force: bool) -> None:
    """Create cas.json in the current project."""
    project_root = get_project_root()
    config_path = get_config_path(project_root)

    if config_path.exists() and not force:
        error_console.print(
            f"[yellow]Warning:[/yellow] {CONFIG_FILE} already exists. Use --force to reinitialize."
        )
        sys.exit(1)

    config = create_default_config(cas_version, features)
    save_config(config, project_root)

    console.print(
        Panel(
            f"[green]Initialized CAS overlay[/green]\n\n"
            f"CAS version: [bold]{config.version or 'not set'}[/bold]\n"
            f"Features: [bold]{', '.join(config.sorted_features()) or 'none'}[/bold]\n"
            f"Config file: [dim]{config_path}[/dim]\n\n"
            f"Next steps:\n"
            f"  1. Run [bold]cas copy-resources[/bold] to pull the default resources\n"
            f"  2. Run [bold]cas generate-keys[/bold] for application.properties",
            title="cas init",
        )
    )


@main.group()
def feature() -> None:
    """Manage enabled feature modules."""


@feature.command("add")
@click.argument("names", nargs=-1, required=True)
@handle_errors
def feature_add(names: tuple[str, ...]) -> None:
    """Enable one or more feature modules."""
    project_root = get_project_root()
    config = load_config(project_root, apply_env=False)
    config.append(FEATURES, *names)
    save_config(config, project_root)
    console.print(f"[green]Features enabled:[/green] {', '.join(config.sorted_features())}")


@feature.command("list")
@handle_errors
def feature_list() -> None:
    """List enabled feature modules."""
    config = load_config(get_project_root())
    if not config.features:
        console.print("[dim]No features enabled.[/dim]")
        return
    for name in config.sorted_features():
        console.print(name)


@main.command()
@handle_errors
def info() -> None:
    """Show the overlay configuration."""
    project_root = get_project_root()
    config = load_config(project_root)
    settings = boot_settings(config)

    table = Table(title="CAS Overlay")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Project root", str(project_root))
    table.add_row("CAS version", config.version or "[yellow]not set[/yellow]")
    table.add_row("Features", ", ".join(config.sorted_features()) or "[dim]none[/dim]")
    table.add_row("Resources", str(resources_path(config, project_root)))
    table.add_row("Main class", settings.main_class)
    table.add_row("Add resources", str(settings.add_resources).lower())

    console.print(table)


@main.command()
@handle_errors
def dependencies() -> None:
    """List the dependencies declared for this overlay."""
    config = load_config(get_project_root())

    table = Table(title=f"Dependencies (CAS {config.version})")
    table.add_column("Coordinate", style="cyan")
    table.add_column("Transitive", justify="center")
    table.add_column("Changing", justify="center")

    for dependency in declare_dependencies(config):
        table.add_row(
            dependency.notation,
            "yes" if dependency.transitive else "no",
            "yes" if dependency.changing else "no",
        )

    console.print(table)


@main.command()
@handle_errors
def repositories() -> None:
    """List the repositories dependencies are resolved from."""
    config = load_config(get_project_root())

    table = Table(title="Repositories")
    table.add_column("Name", style="cyan")
    table.add_column("URL")

    for repository in declare_repositories(config):
        table.add_row(repository.name, repository.url)

    console.print(table)


@main.command("generate-keys")
def generate_keys_command() -> None:
    """Generate keys for application.properties."""
    error_console.print("[dim]Generating keys for CAS...[/dim]")
    click.echo(format_properties(generate_keys()))


@main.command("copy-resources")
@click.option(
    "--archive",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Resources jar to use instead of resolving it",
)
@click.pass_context
@handle_errors
def copy_resources(ctx: click.Context, archive: Path | None) -> None:
    """Copy the resources from the CAS distribution.

    Run with cas -v to print each file as it is checked.
    """
    stats = run_copy_resources(
        get_project_root(),
        archive=archive,
        verbose=ctx.obj["verbose"],
        console=console,
    )
    _print_stats("Copy Complete", stats)


@main.command("clean-resources")
@click.option(
    "--archive",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Resources jar to use instead of resolving it",
)
@click.pass_context
@handle_errors
def clean_resources(ctx: click.Context, archive: Path | None) -> None:
    """Remove default resources from the tree.

    Run with cas -v to print each file as it is checked.
    """
    stats = run_clean_resources(
        get_project_root(),
        archive=archive,
        verbose=ctx.obj["verbose"],
        console=console,
    )
    _print_stats("Clean Complete", stats)


def _print_stats(title: str, stats: ReconcileStats) -> None:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Files checked", str(stats.total_files))
    table.add_row("Copied", str(stats.copied))
    table.add_row("Copied as originals", str(stats.copied_as_original))
    table.add_row("Unchanged", str(stats.unchanged))
    table.add_row("Deleted", str(stats.deleted))
    table.add_row("Originals deleted", str(stats.deleted_originals))
    table.add_row("Kept", str(stats.kept))
    table.add_row("Directories removed", str(stats.directories_removed))

    console.print(table)

    if stats.has_changes:
        console.print("[green]Resources updated.[/green]")
    else:
        console.print("[green]Resources are up to date.[/green]")


if __name__ == "__main__":
    main()

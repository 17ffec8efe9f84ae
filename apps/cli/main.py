"""CLI application for composer-migrate."""

import json
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from core.composer import DEFAULT_TIMEOUT
from core.errors import MigrationError
from core.manifest import load_manifest, missing_packages, parse_package_spec
from core.models import ContribProject, Dependency, ReconcileReport
from core.reconcile import ManifestReconciler

console = Console()

OUTPUT_FORMATS = ("table", "json")


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def format_report_table(report: ReconcileReport) -> Table:
    """Summarize a reconciliation report, one row per phase."""
    table = Table(title="Migration summary")
    table.add_column("Phase")
    table.add_column("Added")
    table.add_column("Commits", justify="right")
    table.add_column("Failures")

    for result in report.phases:
        failures = "\n".join(f"{f.subject}: {f.message}" for f in result.failures)
        table.add_row(
            result.name,
            ", ".join(result.added) or "-",
            str(len(result.commits)),
            f"[yellow]{failures}[/yellow]" if failures else "-",
        )
    return table


def format_missing_json(packages: list[Dependency]) -> str:
    """Format missing packages as JSON."""
    return json.dumps(
        {
            "missing": [
                {"package": dep.package, "version": dep.version, "is_dev": dep.is_dev}
                for dep in packages
            ]
        },
        indent=2,
    )


app = typer.Typer(
    name="composer-migrate",
    help="composer-migrate - Migrate composer.json dependencies into a Composer-managed Drupal project",
    add_completion=False,
)


@app.command()
def migrate(
    source: str = typer.Argument(help="Source composer.json, or the directory containing it"),
    target: str = typer.Argument(help="Scaffolded Composer project directory (a git working tree)"),
    contrib: list[str] = typer.Option([], "--contrib", "-c", help="Drupal contrib project as name:version"),
    library: list[str] = typer.Option([], "--library", "-l", help="Library package as vendor/name[:constraint]"),
    dev_library: list[str] = typer.Option([], "--dev-library", help="Dev library package as vendor/name[:constraint]"),
    composer_bin: str = typer.Option("composer", "--composer-bin", envvar="COMPOSER_MIGRATE_COMPOSER_BIN", help="Composer executable"),
    git_bin: str = typer.Option("git", "--git-bin", envvar="COMPOSER_MIGRATE_GIT_BIN", help="Git executable"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", envvar="COMPOSER_MIGRATE_TIMEOUT", help="Per-command timeout in seconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every command executed"),
) -> None:
    """Migrate dependencies and extra configuration from SOURCE into TARGET."""
    setup_logging(verbose)

    try:
        source_manifest = load_manifest(source)
        contrib_projects = [ContribProject.coerce(entry) for entry in contrib]
        libraries = [parse_package_spec(spec) for spec in library]
        libraries += [parse_package_spec(spec, is_dev=True) for spec in dev_library]

        reconciler = ManifestReconciler(
            composer_binary=composer_bin,
            git_binary=git_bin,
            timeout=timeout,
        )
        report = reconciler.reconcile(source_manifest, target, contrib_projects, libraries)

    except (MigrationError, ValueError) as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)

    console.print(format_report_table(report))
    if not report.ok:
        console.print(
            f"{len(report.failures)} package(s) could not be migrated, see the warnings above.",
            style="yellow",
        )


@app.command()
def missing(
    source: str = typer.Argument(help="Source composer.json, or the directory containing it"),
    target: str = typer.Argument(help="Target composer.json, or the directory containing it"),
    format_type: str = typer.Option("table", "--format", help="Output format: table or json"),
) -> None:
    """List SOURCE packages that TARGET does not declare yet."""
    if format_type not in OUTPUT_FORMATS:
        console.print(f"Error: Unsupported format: {format_type}", style="red")
        raise typer.Exit(1)

    try:
        packages = missing_packages(load_manifest(source), load_manifest(target))
    except MigrationError as e:
        console.print(f"Error: {e}", style="red")
        raise typer.Exit(1)

    if format_type == "json":
        console.print_json(format_missing_json(packages))
    elif packages:
        table = Table(title="Missing packages")
        table.add_column("Package")
        table.add_column("Constraint")
        table.add_column("Section")
        for dep in packages:
            table.add_row(dep.package, dep.version or "*", "require-dev" if dep.is_dev else "require")
        console.print(table)
    else:
        console.print("No missing packages")

    if not packages:
        raise typer.Exit(2)  # Nothing to migrate


if __name__ == "__main__":
    app()

"""Command line entry point for git-log-sqlite."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from git_log_sqlite.core.config import load_config
from git_log_sqlite.core.discovery import discover_directories
from git_log_sqlite.core.errors import ConfigError, PersistenceError
from git_log_sqlite.core.orchestrator import DEFAULT_NUM_WORKERS, IngestionOrchestrator
from git_log_sqlite.core.persistence import PersistenceGateway
from git_log_sqlite.core.progress import NullProgressReporter, RichProgressReporter
from git_log_sqlite.models.outcome import BatchSummary

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # GitPython is chatty at DEBUG
    logging.getLogger("git").setLevel(logging.INFO)


def _print_summary(summary: BatchSummary, ignored: list) -> None:
    console.print(f"\n[bold]# Done in {summary.elapsed_seconds:.2f} seconds[/bold]\n")

    console.print(f"[bold]# {summary.stored_count} repositories in the table[/bold]\n")
    if summary.stored:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Repository")
        table.add_column("Commits", justify="right")
        table.add_column("Path", style="dim")
        for stored in summary.stored:
            table.add_row(stored.identity.name, str(stored.commit_count), str(stored.path))
        console.print(table)

    if ignored:
        console.print(f"\n[bold]# {len(ignored)} ignored repositories:[/bold]\n")
        console.print(", ".join(ignored))

    if summary.skipped:
        console.print(
            f"\n[yellow]# {summary.skipped_count} directories were not stored "
            "(empty, or not a git repository?):[/yellow]\n"
        )
        for skipped in summary.skipped:
            console.print(
                f"{escape(str(skipped.path))}  [dim]{skipped.reason.value}: {escape(skipped.detail)}[/dim]"
            )


@click.command()
@click.version_option(package_name="git-log-sqlite")
@click.argument("root", type=click.Path(exists=True, path_type=Path))
@click.option("-r", "--recursive", is_flag=True, help="Recursively scan the root directory")
@click.option(
    "-m", "--max-depth", default=1, show_default=True, help="Max depth of the recursive scan"
)
@click.option(
    "-d",
    "--database",
    type=click.Path(path_type=Path),
    default=Path("repositories.db"),
    show_default=True,
    help="Path to the SQLite database",
)
@click.option(
    "-f",
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=Path("config.toml"),
    show_default=True,
    help="Path to TOML configuration file",
)
@click.option("-c", "--clear", is_flag=True, help="Delete all records before scanning")
@click.option(
    "-n",
    "--num-threads",
    default=DEFAULT_NUM_WORKERS,
    show_default=True,
    type=click.IntRange(min=1),
    help="Number of worker threads",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--no-progress", is_flag=True, help="Don't show the progress bar")
def main(
    root: Path,
    recursive: bool,
    max_depth: int,
    database: Path,
    config_path: Path,
    clear: bool,
    num_threads: int,
    verbose: bool,
    no_progress: bool,
):
    """Store the non-merge commit history of git repositories in SQLite."""
    _configure_logging(verbose)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()

    discovery = discover_directories(
        root.resolve(),
        recursive=recursive,
        max_depth=max_depth,
        ignored_repositories=config.ignored_repositories,
    )

    try:
        gateway = PersistenceGateway.open(database, pool_size=num_threads, clear=clear)
    except PersistenceError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise click.Abort()

    reporter = NullProgressReporter() if no_progress else RichProgressReporter(console)
    with gateway:
        orchestrator = IngestionOrchestrator(
            gateway,
            num_workers=num_threads,
            author_map=config.author_map,
            reporter=reporter,
        )
        summary = orchestrator.run(discovery.directories)

    _print_summary(summary, discovery.ignored)


if __name__ == "__main__":
    main()

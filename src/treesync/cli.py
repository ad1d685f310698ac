"""CLI for treesync."""

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import SyncConfig, load_config
from .diffing import compare_trees
from .errors import TreeSyncError
from .ignore import IgnoreSpec
from .integrity import verify_file, verify_tree
from .models import ConflictPolicy, SyncPlan
from .snapshot import count_files, dump_snapshot, flatten, read_snapshot, save_snapshot, total_size
from .utils import humanize_size
from .walker import hash_directory


app = typer.Typer(help="""\
Content-hash snapshots of client directories and three-way diffs
(missing / modified / extra) against a published snapshot, for
incremental launcher updates.""")

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(e: Exception) -> NoReturn:
    err_console.print(f"[red]✗[/red] {e}")
    raise typer.Exit(1)


def _resolve_config(root: Path, config_file: Optional[Path]) -> SyncConfig:
    try:
        return load_config(config_file, root=root)
    except TreeSyncError as e:
        _fail(e)


def _hash_local(
    root: Path,
    config: SyncConfig,
    include: Optional[List[str]],
    exclude: Optional[List[str]],
    workers: Optional[int],
    timeout: Optional[float],
):
    """Hash with CLI flags taking precedence over the config file."""
    return hash_directory(
        root,
        include or config.include,
        exclude or config.exclude,
        ignore=IgnoreSpec.for_root(root) if config.use_ignore_file else None,
        max_workers=workers or config.max_workers,
        timeout=timeout or config.timeout,
    )


@app.command("hash")
def hash_cmd(
    root: Path = typer.Argument(..., help="Directory to snapshot"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write snapshot JSON to this file"),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Regex of paths to keep (repeatable)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Regex of paths to skip (repeatable)"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Hashing threads"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Abort after this many seconds"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (default: ROOT/.treesync/config.yaml)"),
):
    """Hash a directory tree into a snapshot.

    Examples:
        treesync hash ./updates/1.20.4 -o client.json
        treesync hash ./client -e '\\.log$' -e '^screenshots/'
    """
    config = _resolve_config(root, config_file)
    try:
        tree = _hash_local(root, config, include, exclude, workers, timeout)
    except TreeSyncError as e:
        _fail(e)

    if output is None:
        typer.echo(dump_snapshot(tree, indent=2))
        return

    try:
        save_snapshot(tree, output)
    except OSError as e:
        _fail(e)
    console.print(
        f"[green]✓[/green] {count_files(tree)} files ({humanize_size(total_size(tree))}) "
        f"written to {output}"
    )


@app.command()
def diff(
    local_root: Path = typer.Argument(..., help="Local installation directory"),
    remote_snapshot: Path = typer.Argument(..., help="Published snapshot JSON"),
    as_json: bool = typer.Option(False, "--json", help="Print the sync result as JSON"),
    conflicts: Optional[ConflictPolicy] = typer.Option(None, "--conflicts", help="File/directory clash handling"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Hashing threads"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (default: LOCAL_ROOT/.treesync/config.yaml)"),
):
    """Compare a local directory against a published snapshot.

    Examples:
        treesync diff ~/.launcher/clients/1.20.4 client.json
        treesync diff ./client client.json --json --conflicts replace
    """
    config = _resolve_config(local_root, config_file)
    try:
        remote = read_snapshot(remote_snapshot)
        local = _hash_local(local_root, config, None, None, workers, None)
        result = compare_trees(local, remote, conflicts or config.conflict_policy)
    except (TreeSyncError, OSError) as e:
        _fail(e)

    if as_json:
        typer.echo(result.to_json(indent=2))
        return

    if result.is_clean:
        console.print("[green]✓[/green] Up to date")
        return

    groups = [
        ("Missing", "[blue]↓[/blue]", result.missing),
        ("Modified", "[yellow]M[/yellow]", result.modified),
        ("Extra", "[red]-[/red]", result.extra),
        ("Conflicts", "[red]⚠[/red]", result.conflicts),
    ]
    for label, icon, paths in groups:
        if paths:
            console.print(f"[bold]{label}:[/bold]")
            for path in paths:
                console.print(f"  {icon} {path}")
            console.print()

    console.print(SyncPlan.from_diff(result, remote).summary())


@app.command()
def verify(
    file: Path = typer.Argument(..., help="File to check"),
    expected: str = typer.Argument(..., help="Expected SHA-256 hex digest"),
):
    """Check a downloaded file against its expected digest."""
    if verify_file(file, expected):
        console.print(f"[green]✓[/green] {file}")
        return
    err_console.print(f"[red]✗[/red] Digest mismatch: {file}")
    raise typer.Exit(1)


@app.command()
def check(
    root: Path = typer.Argument(..., help="Installed directory"),
    snapshot: Path = typer.Argument(..., help="Snapshot JSON to check against"),
):
    """Check every file of a snapshot (size and digest) under ROOT.

    Examples:
        treesync check ./updates/1.20.4 client.json
    """
    try:
        result = verify_tree(root, read_snapshot(snapshot))
    except (TreeSyncError, OSError) as e:
        _fail(e)

    for path in result.failed:
        console.print(f"  [red]✗[/red] {path}")
    console.print(f"Total: {result.total}, valid: {result.valid}, invalid: {result.invalid}")
    if not result.ok:
        raise typer.Exit(1)


@app.command()
def files(
    snapshot: Path = typer.Argument(..., help="Snapshot JSON"),
):
    """List every file in a snapshot with its size and digest."""
    try:
        tree = read_snapshot(snapshot)
    except (TreeSyncError, OSError) as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Path")
    table.add_column("Size", justify="right")
    table.add_column("SHA-256")
    for entry in flatten(tree):
        table.add_row(entry.path, humanize_size(entry.size), entry.hash[:12])
    console.print(table)
    console.print(f"Total: {humanize_size(total_size(tree))}")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()

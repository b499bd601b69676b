"""
GitLike CLI - Typer Commands

Root application: wires the sub-command groups together and hosts the
top-level merge, remote transfer, serve, version and logs commands.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from gitlike import __version__, server
from gitlike.cli import branch, commit, git, remote, todo
from gitlike.cli.common import console, err_console, get_service, handle_errors
from gitlike.cli.display import format_time
from gitlike.config import load_config
from gitlike.logging.viewer import (
    LOG_TYPES,
    calculate_stats,
    format_entry_line,
    format_stats,
    query_logs,
)
from gitlike.service import DEFAULT_REMOTE
from gitlike.storage import RepositoryStorage

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="gitlike",
    help="Git-like branching, commits and remotes for your todo list",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(branch.app, name="branch")
app.add_typer(todo.app, name="todo")
app.add_typer(commit.app, name="commit")
app.add_typer(remote.app, name="remote")
app.add_typer(git.app, name="git")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging on stderr"),
) -> None:
    """Git-like branching, commits and remotes for your todo list."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def merge(
    source: str = typer.Argument(..., help="Branch to merge into the current branch"),
    delete_source: Optional[bool] = typer.Option(
        None,
        "--delete-source/--keep-source",
        help="Delete or keep the source branch afterwards (asks when omitted)",
    ),
) -> None:
    """Merge a branch into the current branch."""
    with handle_errors():
        service = get_service()
        result = service.merge_branch(source, delete_source=bool(delete_source))

    console.print(f"[green]Merged branch '{result.source}' into '{result.target}'[/green]")
    console.print(f"  - {len(result.todos_merged)} todos merged")
    console.print(f"  - {len(result.commits_merged)} commits merged")

    if delete_source is None:
        delete_source = typer.confirm(f"Delete source branch '{source}'?", default=False)
        if delete_source:
            with handle_errors():
                service.delete_branch(source, force=True)
            result.source_deleted = True

    if result.source_deleted:
        console.print(f"[green]Deleted branch '{source}'[/green]")


@app.command()
def push(remote_name: str = typer.Argument(DEFAULT_REMOTE, metavar="REMOTE", help="Remote name")) -> None:
    """Push the repository snapshot to a remote."""
    with handle_errors():
        remote_obj = get_service().push(remote_name)
    console.print(f"[green]Successfully pushed to {remote_obj.name}[/green] ({remote_obj.url})")


@app.command()
def pull(remote_name: str = typer.Argument(DEFAULT_REMOTE, metavar="REMOTE", help="Remote name")) -> None:
    """Pull a remote snapshot and merge it into the local repository."""
    with handle_errors():
        result = get_service().pull(remote_name)

    console.print(f"[green]Successfully pulled and merged from {result.remote}[/green]")
    console.print(f"  - {result.branches} branches synced")
    console.print(f"  - {result.commits} commits synced")


@app.command()
def fetch(remote_name: str = typer.Argument(DEFAULT_REMOTE, metavar="REMOTE", help="Remote name")) -> None:
    """Show what a remote holds without merging."""
    with handle_errors():
        summary = get_service().fetch(remote_name)

    console.print(f"Remote [cyan]{summary.remote}[/cyan] has:")
    console.print(f"  - {summary.branches} branches")
    console.print(f"  - {summary.commits} commits")
    console.print(f"  - Last sync: {format_time(summary.last_sync, '%Y-%m-%d %H:%M:%S')}")
    console.print(f"\n[dim]Use 'gitlike pull {summary.remote}' to merge these changes[/dim]")


@app.command()
def sync(remote_name: str = typer.Argument(DEFAULT_REMOTE, metavar="REMOTE", help="Remote name")) -> None:
    """Synchronize with a remote (pull then push)."""
    console.print(f"Synchronizing with {remote_name}...")
    with handle_errors():
        result = get_service().sync(remote_name)

    console.print(f"  - {result.pull.branches} branches, {result.pull.commits} commits pulled")
    console.print(f"[green]Synchronization with {result.remote} complete[/green]")


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on (default: $PORT or 8080)"),
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    data: Optional[Path] = typer.Option(None, "--data", help="Snapshot file to serve (default: server_repository.json in the data dir)"),
) -> None:
    """Run the remote server that HTTP remotes push to and pull from."""
    with handle_errors():
        config = load_config()
    port = config.server_port if port is None else port
    storage = RepositoryStorage(data or config.server_repo_path)

    console.print(f"GitLike server starting on port {port}")
    console.print(f"Access the server at: http://localhost:{port}")
    console.print(f"[dim]Snapshot: {storage.path}[/dim]")
    server.serve(storage, host=host, port=port)


@app.command()
def version() -> None:
    """Print the GitLike version."""
    console.print(f"gitlike {__version__}")


@app.command()
def logs(
    log_type: str = typer.Option("all", "--type", "-t", help=f"Log type: {', '.join(LOG_TYPES)}"),
    since: str = typer.Option(None, "--since", "-s", help="Time filter (ISO or relative: 1h, 30m, 2d)"),
    operation: str = typer.Option(None, "--operation", "-o", help="Filter by operation prefix"),
    failed: bool = typer.Option(False, "--failed", help="Only failed entries"),
    tail: int = typer.Option(20, "--tail", "-n", help="Show last N entries"),
    stats: bool = typer.Option(False, "--stats", help="Show statistics instead of entries"),
) -> None:
    """View the operation and sync logs."""
    try:
        entries = query_logs(
            log_type=log_type,
            since=since,
            operation=operation,
            success=False if failed else None,
            limit=tail if not stats else 1000,
        )
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not entries:
        console.print("[dim]No log entries found[/dim]")
        return

    if stats:
        console.print(format_stats(calculate_stats(entries)))
        return

    for entry in reversed(entries):
        style = "green" if entry.get("success") else "red"
        console.print(f"[{style}]{escape(format_entry_line(entry))}[/{style}]", highlight=False)


def run() -> None:
    """Entry point wrapper that invokes the Typer app."""
    app()


if __name__ == "__main__":
    run()

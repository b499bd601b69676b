"""
Git integration commands: init, status, sync, commit, push, pull.
"""

import typer
from rich.markup import escape
from rich.panel import Panel

from gitlike.cli.common import console, get_service, handle_errors
from gitlike.cli.display import format_time

app = typer.Typer(help="Mirror todo branches and commits into Git", no_args_is_help=True)

# Lines of git push output worth echoing
PUSH_OUTPUT_MARKERS = ("->", "set up to track")


@app.command()
def init() -> None:
    """Enable Git integration for the repository around the current directory."""
    with handle_errors():
        result = get_service().git_init()

    console.print("[green]Git integration initialized[/green]")
    console.print(f"  Repository: {result.repo_path}")
    if result.remote_url:
        console.print(f"  Remote: {result.remote_url}")
    console.print(f"  Current branch: {result.current_branch}")
    if result.branches_created:
        console.print(f"  Created todo branches: {', '.join(result.branches_created)}")
    if result.sync_error:
        console.print(f"[yellow]Could not sync with Git:[/yellow] {result.sync_error}")


@app.command()
def status() -> None:
    """Show Git integration status."""
    with handle_errors():
        info = get_service().git_status()

    if not info.enabled:
        console.print("Git integration: [red]disabled[/red]")
        console.print("[dim]Run 'gitlike git init' to enable Git integration[/dim]")
        return

    lines = [
        "[bold]Enabled:[/bold] yes",
        f"[bold]Auto-sync:[/bold] {'yes' if info.auto_sync else 'no'}",
        f"[bold]Auto-commit:[/bold] {'yes' if info.auto_commit else 'no'}",
        f"[bold]Repository:[/bold] {info.repo_path}",
    ]
    if info.remote_url:
        lines.append(f"[bold]Remote:[/bold] {info.remote_url}")
    if info.in_git_repo:
        lines.append(f"[bold]Current Git branch:[/bold] {info.current_branch}")
        lines.append(f"[bold]Changed files:[/bold] {len(info.changed_files)}")
        if 0 < len(info.changed_files) <= 5:
            lines.extend(f"  - {path}" for path in info.changed_files)
    else:
        lines.append("[yellow]Not currently in a Git repository[/yellow]")
    if info.last_git_sync:
        lines.append(f"[bold]Last Git sync:[/bold] {format_time(info.last_git_sync, '%Y-%m-%d %H:%M:%S')}")

    console.print(Panel("\n".join(lines), title="[bold cyan]Git Integration[/bold cyan]", border_style="cyan"))


@app.command()
def sync() -> None:
    """Create todo branches for Git branches and follow the Git current branch."""
    with handle_errors():
        service = get_service()
        result = service.git_sync()
        branch_count = len(service.load().branches)

    console.print(f"[green]Synchronized with Git branch:[/green] {result.current_branch}")
    if result.branches_created:
        console.print(f"  Created todo branches: {', '.join(result.branches_created)}")
    console.print(f"  Todo branches: {branch_count}")


@app.command()
def commit(
    message: list[str] = typer.Argument(..., help="Commit message"),
    push: bool = typer.Option(False, "--push", "-p", help="Push to the Git remote afterwards"),
) -> None:
    """Record a commit with completed todos and commit the working tree to Git."""
    with handle_errors():
        result = get_service().git_commit(" ".join(message), push=push)

    console.print(f"[green]Created commit {result.commit.id}[/green] with {len(result.commit.todos)} todos")
    if result.git_sha:
        console.print(f"[green]Git commit:[/green] {result.git_sha[:8]}")
    if result.pushed:
        console.print("[green]Pushed to Git remote[/green]")
        _print_push_output(result.push_output)
    if result.push_error:
        console.print(f"[yellow]Push failed:[/yellow] {escape(result.push_error)}")
        console.print("[dim]The commit is saved; run `gitlike git push` to retry[/dim]")


@app.command()
def push(
    auto_commit: bool = typer.Option(False, "--commit", "-c", help="Commit pending changes before pushing"),
) -> None:
    """Push Git commits to the remote."""
    with handle_errors():
        result = get_service().git_push(auto_commit=auto_commit)

    info = result.status
    console.print(f"Current branch: [cyan]{info.current_branch}[/cyan]")
    if info.remote_url:
        console.print(f"Remote: {info.remote_url}")
    if result.auto_committed:
        console.print("[green]Pending changes committed[/green]")
    elif info.uncommitted_count:
        console.print(f"[yellow]You have {info.uncommitted_count} uncommitted changes[/yellow]")
        console.print("[dim]Use --commit to commit them before pushing[/dim]")

    if not result.pushed:
        console.print("Nothing to push - branch is up to date")
        return

    console.print(f"Pushed {info.unpushed_count} commits:")
    for git_commit in info.unpushed_commits[:3]:
        console.print(f"  [yellow]{git_commit.short_sha}[/yellow] {escape(git_commit.message)} [dim](by {git_commit.author})[/dim]")
    if info.unpushed_count > 3:
        console.print(f"  ... and {info.unpushed_count - 3} more commits")
    _print_push_output(result.output)


@app.command()
def pull(
    stash: bool = typer.Option(False, "--stash", "-s", help="Stash uncommitted changes first"),
    sync_branches: bool = typer.Option(False, "--sync", "-y", help="Sync todo branches afterwards"),
) -> None:
    """Pull changes from the Git remote."""
    with handle_errors():
        result = get_service().git_pull(stash=stash, sync=sync_branches)

    console.print(f"Pulled branch [cyan]{result.branch}[/cyan]" + (f" from {result.remote_url}" if result.remote_url else ""))
    if result.stashed:
        console.print(f"[dim]Stashed {len(result.changed_files)} uncommitted changes[/dim]")
    elif result.changed_files:
        console.print(f"[yellow]You have {len(result.changed_files)} uncommitted changes[/yellow]")
    if result.reconcile is not None:
        console.print("[green]Todo branches synchronized[/green]")
        if result.reconcile.branches_created:
            console.print(f"  Created todo branches: {', '.join(result.reconcile.branches_created)}")


def _print_push_output(output: str) -> None:
    for line in output.splitlines():
        line = line.strip()
        if line and any(marker in line for marker in PUSH_OUTPUT_MARKERS):
            console.print(f"  [dim]{escape(line)}[/dim]")

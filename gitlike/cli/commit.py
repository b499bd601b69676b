"""
Commit commands: create, list, show.
"""

import typer

from gitlike.cli.common import console, err_console, get_service, handle_errors
from gitlike.cli.display import commit_panel, commit_table

app = typer.Typer(help="Record and inspect commits", no_args_is_help=True)


@app.command()
def create(
    message: list[str] = typer.Argument(..., help="Commit message"),
    include_completed: bool = typer.Option(
        False,
        "--include-completed",
        "-c",
        help="Also include completed todos when a todo is active",
    ),
    git: bool = typer.Option(False, "--git", "-g", help="Also create a Git commit"),
    add: bool = typer.Option(False, "--add", "-a", help="Stage all changes before the Git commit"),
) -> None:
    """Create a commit linked to the active and completed todos."""
    with handle_errors():
        result = get_service().commit(
            " ".join(message),
            include_completed=include_completed,
            git=git,
            add=add,
        )

    commit = result.commit
    console.print(f"[green]Created commit {commit.id}:[/green] {commit.message}")
    console.print(f"  Linked to {len(commit.todos)} todos: {', '.join(f'#{t}' for t in commit.todos)}")
    if commit.active_todo is not None:
        console.print(f"  Active task: #{commit.active_todo}")

    if result.git_sha:
        console.print(f"[green]Git commit created:[/green] {result.git_sha[:8]}")
    elif result.git_skipped:
        err_console.print(f"[yellow]{result.git_skipped}. Skipping Git commit.[/yellow]")


@app.command("list")
def list_commits(
    branch: str = typer.Option(None, "--branch", "-b", help="Only commits on this branch"),
    all_branches: bool = typer.Option(False, "--all", help="Commits from every branch"),
    limit: int = typer.Option(20, "--limit", "-n", help="Show last N commits"),
) -> None:
    """List commits on the current branch, newest first."""
    with handle_errors():
        repo = get_service().load()

    if all_branches:
        commits = list(repo.commits)
    else:
        name = branch or repo.current_branch
        commits = [c for c in repo.commits if c.branch == name]

    if not commits:
        console.print("[dim]No commits found[/dim]")
        return
    console.print(commit_table(list(reversed(commits))[:limit]))


@app.command()
def show(commit_id: str = typer.Argument(..., metavar="ID", help="Commit ID or unique prefix")) -> None:
    """Show one commit."""
    with handle_errors():
        commit = get_service().find_commit(commit_id)
    console.print(commit_panel(commit))

"""
Branch commands: create, list, switch, delete.
"""

import typer

from gitlike.cli.common import console, get_service, handle_errors
from gitlike.cli.display import branch_table

app = typer.Typer(help="Create, list, switch and delete branches", no_args_is_help=True)


@app.command()
def create(name: str = typer.Argument(..., help="Name of the new branch")) -> None:
    """Create a new empty branch."""
    with handle_errors():
        branch = get_service().create_branch(name)
    console.print(f"[green]Created branch:[/green] {branch.name}")


@app.command("list")
def list_branches() -> None:
    """List all branches (* marks the current one)."""
    with handle_errors():
        repo = get_service().load()
    console.print(branch_table(repo))


@app.command()
def switch(
    name: str = typer.Argument(..., help="Branch to switch to"),
    sync: bool = typer.Option(False, "--sync", "-s", help="Sync with the first remote when switching"),
) -> None:
    """Switch to a branch."""
    with handle_errors():
        result = get_service().switch_branch(name, sync=sync)

    if result.pulled_from:
        console.print(f"[cyan]Pulled branch '{name}' from {result.pulled_from}[/cyan]")
    console.print(f"[green]Switched to branch:[/green] {result.branch}")
    if result.synced_with:
        console.print(f"[dim]Synced with {result.synced_with}[/dim]")
    if result.sync_error:
        console.print(f"[yellow]Remote sync failed:[/yellow] {result.sync_error}")
    if result.git_checked_out:
        console.print(f"[green]Git branch synchronized:[/green] {result.branch}")
    if result.git_error:
        console.print(f"[yellow]Git checkout failed:[/yellow] {result.git_error}")


@app.command()
def delete(
    name: str = typer.Argument(..., help="Branch to delete"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Delete even if it has todos or is the default branch"
    ),
) -> None:
    """Delete a branch."""
    with handle_errors():
        branch = get_service().delete_branch(name, force=force)

    if branch.todos:
        console.print(f"[green]Deleted branch '{name}'[/green] (removed {len(branch.todos)} todos)")
    else:
        console.print(f"[green]Deleted branch '{name}'[/green]")

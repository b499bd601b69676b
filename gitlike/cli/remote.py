"""
Remote registry commands: add, list, remove.
"""

import typer

from gitlike.cli.common import console, get_service, handle_errors
from gitlike.cli.display import remote_table

app = typer.Typer(help="Manage remote snapshot stores", no_args_is_help=True)


@app.command()
def add(
    name: str = typer.Argument(..., help="Remote name"),
    url: str = typer.Argument(..., help="Server URL (http) or snapshot path (file)"),
    remote_type: str = typer.Option("http", "--type", "-t", help="Remote type: http or file"),
) -> None:
    """Add a remote."""
    with handle_errors():
        remote = get_service().add_remote(name, url, remote_type)
    console.print(f"[green]Added remote '{remote.name}':[/green] {remote.url} ({remote.type_name})")


@app.command("list")
def list_remotes() -> None:
    """List configured remotes."""
    with handle_errors():
        repo = get_service().load()

    if not repo.remotes:
        console.print("[dim]No remotes configured[/dim]")
        return
    console.print(remote_table(repo.remotes))


@app.command()
def remove(name: str = typer.Argument(..., help="Remote name")) -> None:
    """Remove a remote."""
    with handle_errors():
        remote = get_service().remove_remote(name)
    console.print(f"[green]Removed remote '{remote.name}'[/green]")

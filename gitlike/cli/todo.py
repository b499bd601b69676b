"""
Todo commands, all scoped to the current branch.
"""

import typer

from gitlike.cli.common import console, get_service, handle_errors
from gitlike.cli.display import format_duration, format_time, todo_panel, todo_table
from gitlike.lifecycle import parse_todo_id, require_current_branch

app = typer.Typer(help="Manage todos on the current branch", no_args_is_help=True)


def create(
    title: str = typer.Argument(..., help="Todo title"),
    description: str = typer.Option("", "--description", "-d", help="Todo description"),
    priority: str = typer.Option("medium", "--priority", "-p", help="low, medium or high"),
) -> None:
    """Create a new todo."""
    with handle_errors():
        todo = get_service().create_todo(title, description, priority)

    console.print(f"[green]Created todo #{todo.id}:[/green] {todo.title}")
    if todo.priority.value != "medium":
        console.print(f"  Priority: {todo.priority.value}")
    if todo.description:
        console.print(f"  Description: {todo.description}")


app.command("create")(create)
app.command("add", help="Create a new todo (alias of create).")(create)


@app.command("list")
def list_todos() -> None:
    """List todos in the current branch."""
    with handle_errors():
        branch = require_current_branch(get_service().load())

    if not branch.todos:
        console.print(f"[dim]No todos in branch '{branch.name}'[/dim]")
        return
    console.print(todo_table(branch))


@app.command()
def update(
    todo_id: str = typer.Argument(..., metavar="ID", help="Todo ID"),
    status: str = typer.Argument(..., help="pending, in-progress or completed"),
) -> None:
    """Update a todo's status."""
    with handle_errors():
        todo = get_service().update_todo(parse_todo_id(todo_id), status)
    console.print(f"Updated todo #{todo.id} status to: {todo.status.value}")


@app.command()
def done(todo_id: str = typer.Argument(..., metavar="ID", help="Todo ID")) -> None:
    """Mark a todo as completed."""
    with handle_errors():
        todo = get_service().complete_todo(parse_todo_id(todo_id))

    console.print(f"[green]Todo #{todo.id} marked as completed[/green]")
    console.print("[dim]Ready to commit your work:[/dim]")
    console.print(f'[dim]  gitlike commit create "Complete todo #{todo.id}"[/dim]')


@app.command()
def start(todo_id: str = typer.Argument(..., metavar="ID", help="Todo ID")) -> None:
    """Start working on a todo (makes it the active todo)."""
    with handle_errors():
        todo = get_service().start_todo(parse_todo_id(todo_id))

    console.print(f"[green]Started working on todo #{todo.id}:[/green] {todo.title}")
    console.print("[dim]Commits you record now are linked to this todo.[/dim]")


@app.command()
def stop() -> None:
    """Stop working on the active todo."""
    with handle_errors():
        todo = get_service().stop_todo()
    console.print(f"Stopped working on todo #{todo.id}: {todo.title}")


@app.command()
def active() -> None:
    """Show the todo currently being worked on."""
    with handle_errors():
        service = get_service()
        repo = service.load()
        todo = require_current_branch(repo).active_todo()

    if todo is None:
        console.print("No active todo. Use 'gitlike todo start <id>' to start working on a task.")
        return

    console.print(todo_panel(todo, "Currently working on"))
    if todo.started_at:
        console.print(f"  Working for: {format_duration(todo.started_at)}")
    recent = [repo.get_commit(c) for c in todo.commits[-3:]]
    for commit in reversed([c for c in recent if c is not None]):
        console.print(f"  - [yellow]{commit.short_id}[/yellow] {commit.message}")


@app.command()
def history(todo_id: str = typer.Argument(..., metavar="ID", help="Todo ID")) -> None:
    """Show a todo's commit history."""
    with handle_errors():
        todo, commits = get_service().todo_history(parse_todo_id(todo_id))

    console.print(todo_panel(todo, f"Todo #{todo.id}"))

    if not commits:
        console.print("\n[dim]No commits linked to this todo yet[/dim]")
        return

    console.print(f"\n[bold]Commit History ({len(commits)} commits):[/bold]")
    for commit in commits:
        console.print(
            f"  [yellow]{commit.short_id}[/yellow] ({format_time(commit.created_at, '%b %d, %H:%M')})"
        )
        console.print(f"     {commit.message}")
        console.print(f"     [dim]by {commit.author}[/dim]")

    if todo.started_at and todo.completed_at:
        console.print(f"\nDevelopment time: {format_duration(todo.started_at, todo.completed_at)}")

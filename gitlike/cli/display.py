"""
Rich rendering helpers shared by the CLI commands.
"""

from datetime import datetime, timezone

from rich.panel import Panel
from rich.table import Table

from gitlike.models import Branch, Commit, Remote, Repository, Todo, TodoStatus

STATUS_STYLES = {
    TodoStatus.PENDING: "yellow",
    TodoStatus.IN_PROGRESS: "blue",
    TodoStatus.COMPLETED: "green",
}

PRIORITY_STYLES = {
    "low": "dim",
    "medium": "white",
    "high": "bold red",
}


def format_time(value: datetime | None, fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Local-time rendering of an aware timestamp, '-' when unset."""
    if value is None:
        return "-"
    return value.astimezone().strftime(fmt)


def format_duration(start: datetime | None, end: datetime | None = None) -> str:
    """Human duration like '2h 15m' between two timestamps (end defaults to now)."""
    if start is None:
        return "-"
    end = end or datetime.now(timezone.utc)
    minutes = max(int((end - start).total_seconds() // 60), 0)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def status_text(status: TodoStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def priority_text(priority: str) -> str:
    style = PRIORITY_STYLES.get(priority, "white")
    return f"[{style}]{priority}[/{style}]"


def branch_table(repo: Repository) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("", width=1)
    table.add_column("Branch", style="cyan")
    table.add_column("Todos", justify="right")
    table.add_column("Created", style="dim")

    for branch in repo.branches:
        marker = "*" if branch.name == repo.current_branch else ""
        table.add_row(marker, branch.name, str(len(branch.todos)), format_time(branch.created_at))
    return table


def todo_table(branch: Branch) -> Table:
    table = Table(show_header=True, header_style="bold", title=f"Todos in '{branch.name}'")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Status", width=12)
    table.add_column("Priority", width=8)
    table.add_column("Title")
    table.add_column("Commits", justify="right", style="dim")

    for todo in branch.todos:
        title = todo.title
        if todo.is_active:
            title = f"[bold]{title}[/bold] [magenta](active)[/magenta]"
        if todo.description:
            title += f"\n[dim]{todo.description}[/dim]"
        table.add_row(
            str(todo.id),
            status_text(todo.status),
            priority_text(todo.priority.value),
            title,
            str(len(todo.commits)) if todo.commits else "",
        )
    return table


def commit_table(commits: list[Commit]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="yellow")
    table.add_column("Branch", style="cyan")
    table.add_column("Message")
    table.add_column("Todos", style="dim")
    table.add_column("Author", style="dim")
    table.add_column("Date", style="dim")

    for commit in commits:
        table.add_row(
            commit.short_id,
            commit.branch,
            commit.message,
            ", ".join(f"#{t}" for t in commit.todos),
            commit.author,
            format_time(commit.created_at),
        )
    return table


def commit_panel(commit: Commit) -> Panel:
    lines = [
        f"[bold]Author:[/bold] {commit.author}",
        f"[bold]Branch:[/bold] {commit.branch}",
        f"[bold]Date:[/bold]   {format_time(commit.created_at, '%a %b %d %H:%M:%S %Y')}",
        "",
        f"    {commit.message}",
    ]
    if commit.todos:
        lines.append("")
        lines.append(f"[bold]Todos included:[/bold] {', '.join(f'#{t}' for t in commit.todos)}")
    if commit.active_todo is not None:
        lines.append(f"[bold]Active todo:[/bold] #{commit.active_todo}")

    return Panel(
        "\n".join(lines),
        title=f"[bold yellow]commit {commit.id}[/bold yellow]",
        border_style="yellow",
    )


def remote_table(remotes: list[Remote]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("URL")
    table.add_column("Type", style="dim")

    for remote in remotes:
        table.add_row(remote.name, remote.url, remote.type_name)
    return table


def todo_panel(todo: Todo, title: str) -> Panel:
    lines = [
        f"[bold]#{todo.id}[/bold] {todo.title}",
        f"[bold]Status:[/bold] {status_text(todo.status)} | "
        f"[bold]Priority:[/bold] {priority_text(todo.priority.value)}",
    ]
    if todo.description:
        lines.append(f"[bold]Description:[/bold] {todo.description}")
    if todo.started_at:
        lines.append(f"[bold]Started:[/bold] {format_time(todo.started_at)}")
    if todo.completed_at:
        lines.append(f"[bold]Completed:[/bold] {format_time(todo.completed_at)}")
    lines.append(f"[bold]Commits:[/bold] {len(todo.commits)}")

    return Panel("\n".join(lines), title=f"[bold cyan]{title}[/bold cyan]", border_style="cyan")

"""
Typer application for taskspine hosts.

A host builds its container, then hands it to ``create_app``::

    app = create_app(container)

    if __name__ == "__main__":
        app()

Commands:
    run GROUP NAME   run one task now (exit 0/1, see ``TaskContainer.execute``)
    dispatch         register scheduled tasks and block until interrupted
    list             show registered tasks

Dispatched firings re-invoke the host as ``<program> run GROUP NAME``, which
lands on the ``run`` command here.
"""

from __future__ import annotations

import json

import typer
from typer import Typer

from taskspine.cli.utils import console, err_console, task_rows
from taskspine.framework.container import TaskContainer


def create_app(container: TaskContainer, name: str = "taskspine") -> Typer:
    """Build the CLI for *container*."""
    app = Typer(
        name=name,
        help="Run and dispatch registered tasks.",
        no_args_is_help=True,
        rich_markup_mode="rich",
    )

    @app.callback()
    def main() -> None:
        """Run one task now, or dispatch all scheduled tasks."""

    @app.command("run")
    def run(
        group: str = typer.Argument(..., help="Task group"),
        task_name: str = typer.Argument(..., metavar="NAME", help="Task name"),
    ) -> None:
        """Run a single task by group and name."""
        code = container.execute([group, task_name])
        raise typer.Exit(code=int(code))

    @app.command("dispatch")
    def dispatch(
        duration: float | None = typer.Option(  # noqa: UP007
            None, "--for", help="Stop after this many seconds (default: until interrupted)."
        ),
    ) -> None:
        """Register every scheduled task and fire them on their cron schedules."""
        dispatcher = container.dispatch_tasks()
        console.print(
            f"[bold green]Dispatching[/bold green] {dispatcher.stats.registered} scheduled task(s)"
        )
        try:
            container.wait(duration)
        except KeyboardInterrupt:
            console.print("\n[yellow]Dispatch stopped by user[/yellow]")
        finally:
            container.shutdown(wait=False)

        if dispatcher.stats.registration_errors:
            err_console.print(f"[red]{dispatcher.stats.registration_errors} task(s) failed to schedule[/red]")

    @app.command("list")
    def list_tasks(
        json_out: bool = typer.Option(False, "--json", help="Output JSON."),
    ) -> None:
        """List registered tasks."""
        rows = task_rows(container)
        if json_out:
            console.print_json(json.dumps(rows))
            return
        if not rows:
            console.print("[yellow]No tasks registered[/yellow]")
            return

        from rich.table import Table

        table = Table(title="Tasks")
        for column in ("group", "name", "schedule", "error_after", "mode", "enabled"):
            table.add_column(column)
        for row in rows:
            table.add_row(*(str(row[column]) if row[column] is not None else "-" for column in row))
        console.print(table)

    return app

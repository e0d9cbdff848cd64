"""SchedTrack CLI.

Commands:
- init: Create the store tables
- import: Import a schedule workbook into the working set
- save: Save working-set projects to the store
- remove: Remove saved projects and their change history
- list: Show saved projects, filtered, categorized and sorted
- changes: Show the change history of one saved project
- serve: Run the project API
"""

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from schedtrack.config import AppConfig
from schedtrack.core.logging import configure_logging
from schedtrack.fields import FIELD_SPECS, ProjectField, get_field, spec_for_label
from schedtrack.models import DateCategory, Project
from schedtrack.pipeline.importer import ImportPipeline
from schedtrack.pipeline.types import BulkResult
from schedtrack.query import DateWindow, filter_by_window, filter_projects
from schedtrack.reconcile.categorize import categorize_projects, sort_projects
from schedtrack.store import build_store
from schedtrack.store.base import ProjectStore
from schedtrack.store.sql_store import SqlProjectStore
from schedtrack.working_set import load_working_set, save_working_set

app = typer.Typer(
    name="schedtrack",
    help="SchedTrack - Project schedule import, triage and change tracking",
    no_args_is_help=True,
)

console = Console()

# Summary columns shown besides the chosen milestone date
_SUMMARY_FIELDS = (
    ProjectField.PMO_ID,
    ProjectField.ORDER,
    ProjectField.PROJECT_NAME,
    ProjectField.PROJECT_MANAGER,
)

_CATEGORY_STYLES = {
    DateCategory.THIS_WEEK: "bold red",
    DateCategory.NEXT_WEEK: "red",
    DateCategory.THIS_MONTH: "yellow",
    DateCategory.NEXT_MONTH: "green",
    DateCategory.NEXT_3_MONTHS: "cyan",
    DateCategory.FUTURE: "blue",
    DateCategory.NONE: "dim",
}


@app.callback()
def main(ctx: typer.Context):
    """Load configuration and set up logging for every command."""
    config = AppConfig.from_env()
    configure_logging(config.log_level, config.log_format)
    ctx.obj = config


async def _open_store(config: AppConfig) -> ProjectStore:
    store = build_store(config)
    if isinstance(store, SqlProjectStore):
        await store.init()
    return store


def _cell(project: Project, field: ProjectField) -> str:
    """Cell text; a changed field also shows its prior value."""
    value = str(get_field(project, field))
    changes = project.changes or {}
    if field.value in changes:
        prior = changes[field.value]
        return f"[yellow]{value}[/yellow] [dim](was {prior if prior != '' else '-'})[/dim]"
    return value


def _label(key: str) -> str:
    spec = spec_for_label(key)
    return spec.label if spec else key


def _project_table(title: str, projects: list[Project], date_field: ProjectField) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", justify="right")
    for field in _SUMMARY_FIELDS:
        table.add_column(FIELD_SPECS[field].label)
    table.add_column(FIELD_SPECS[date_field].label)
    table.add_column("Category")
    table.add_column("Changed", style="yellow")

    for project in projects:
        category = project.date_category or DateCategory.NONE
        changed = ", ".join(_label(key) for key in (project.changes or {}))
        table.add_row(
            str(project.id),
            *(_cell(project, field) for field in _SUMMARY_FIELDS),
            _cell(project, date_field),
            f"[{_CATEGORY_STYLES[category]}]{category.value}[/]",
            changed,
        )
    return table


def _print_bulk(action: str, outcome: BulkResult) -> None:
    for project_id in outcome.succeeded:
        console.print(f"[green]✓[/green] {action} {project_id}")
    for project_id in outcome.missing:
        console.print(f"[yellow]⚠[/yellow] {project_id} not found")
    for project_id, error in outcome.failed.items():
        console.print(f"[red]✗[/red] {project_id}: {error}")


@app.command()
def init(
    ctx: typer.Context,
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize store schema."""
    config: AppConfig = ctx.obj
    console.print(f"[bold]Initializing store:[/bold] {config.store.url}")

    async def _init():
        store = SqlProjectStore.from_config(config.store)
        try:
            if drop:
                console.print("[yellow]Dropping existing tables...[/yellow]")
            await store.init(drop=drop)
        finally:
            await store.close()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Store initialized")


@app.command(name="import")
def import_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Schedule workbook (XLSX/XLS/CSV)"),
    working: Path | None = typer.Option(None, "--working", help="Working set file"),
    date_field: ProjectField | None = typer.Option(
        None, "--date-field", help="Milestone used for triage"
    ),
):
    """Import a schedule and merge it into the working set."""
    config: AppConfig = ctx.obj
    working_path = working or config.working_set_path
    field = date_field or config.triage.date_field

    async def _import():
        store = await _open_store(config)
        try:
            pipeline = ImportPipeline(config, store)
            return await pipeline.run(
                file, working=load_working_set(working_path), date_field=field
            )
        finally:
            await store.close()

    result = asyncio.run(_import())
    if not result.success:
        console.print(f"[bold red]Import failed:[/bold red] {result.message}")
        raise typer.Exit(1)

    save_working_set(working_path, result.projects)
    console.print(_project_table(f"Working set ({result.source_name})", result.projects, field))
    console.print(f"[bold green]✓[/bold green] {result.message}")
    if result.warnings:
        console.print(f"[yellow]⚠ {result.warnings} cell(s) could not be converted[/yellow]")
    if result.collisions:
        console.print(
            "[yellow]⚠ Duplicate ids in this file: "
            + ", ".join(str(i) for i in result.collisions)
            + "[/yellow]"
        )


@app.command()
def save(
    ctx: typer.Context,
    ids: list[int] = typer.Argument(None, help="Project ids to save"),
    all_: bool = typer.Option(False, "--all", help="Save the whole working set"),
    working: Path | None = typer.Option(None, "--working", help="Working set file"),
):
    """Save working-set projects to the store."""
    config: AppConfig = ctx.obj
    projects = load_working_set(working or config.working_set_path)

    if all_:
        selected = projects
        unknown: list[int] = []
    elif ids:
        by_id = {p.id: p for p in projects}
        selected = [by_id[i] for i in ids if i in by_id]
        unknown = [i for i in ids if i not in by_id]
    else:
        console.print("[red]Give project ids or --all[/red]")
        raise typer.Exit(1)

    async def _save():
        store = await _open_store(config)
        try:
            return await ImportPipeline(config, store).save_projects(selected)
        finally:
            await store.close()

    outcome = asyncio.run(_save())
    outcome.missing.extend(unknown)
    _print_bulk("Saved", outcome)
    if not outcome.success:
        raise typer.Exit(1)


@app.command()
def remove(
    ctx: typer.Context,
    ids: list[int] = typer.Argument(..., help="Project ids to remove"),
):
    """Remove saved projects and their change history."""
    config: AppConfig = ctx.obj

    async def _remove():
        store = await _open_store(config)
        try:
            return await ImportPipeline(config, store).remove_projects(ids)
        finally:
            await store.close()

    outcome = asyncio.run(_remove())
    _print_bulk("Removed", outcome)
    if not outcome.success:
        raise typer.Exit(1)


@app.command(name="list")
def list_cmd(
    ctx: typer.Context,
    terms: list[str] = typer.Option(
        None, "--filter", "-f", help='Search term: "column:value" or free text'
    ),
    window: DateWindow | None = typer.Option(None, "--window", help="Date window"),
    date_field: ProjectField | None = typer.Option(
        None, "--date-field", help="Milestone used for triage"
    ),
):
    """Show saved projects."""
    config: AppConfig = ctx.obj
    field = date_field or config.triage.date_field
    today = date.today()

    async def _list():
        store = await _open_store(config)
        try:
            return await store.get_all()
        finally:
            await store.close()

    projects = asyncio.run(_list())
    if terms:
        projects = filter_projects(projects, terms)
    if window:
        projects = filter_by_window(projects, field, window, today)
    projects = categorize_projects(
        projects, field, today, policy=config.triage.category_policy
    )
    projects = sort_projects(projects, field, today, policy=config.triage.sort_policy)

    console.print(_project_table("Saved projects", projects, field))
    console.print(f"{len(projects)} project(s)")


@app.command()
def changes(
    ctx: typer.Context,
    project_id: int = typer.Argument(..., help="Project id"),
):
    """Show the change history of a saved project."""
    config: AppConfig = ctx.obj

    async def _changes():
        store = await _open_store(config)
        try:
            return await store.get_changes(project_id)
        finally:
            await store.close()

    rows = asyncio.run(_changes())
    if not rows:
        console.print(f"[yellow]No changes recorded for project {project_id}[/yellow]")
        return

    table = Table(title=f"Changes for project {project_id}")
    table.add_column("When", style="cyan")
    table.add_column("Field")
    table.add_column("Old", style="red")
    table.add_column("New", style="green")
    for row in rows:
        table.add_row(
            row.changed_at.strftime("%Y-%m-%d %H:%M:%S"),
            row.field_name,
            row.old_value or "",
            row.new_value or "",
        )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host to bind"),
    port: int = typer.Option(3001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the project API."""
    import uvicorn

    typer.echo(f"Starting SchedTrack API on http://{host}:{port}")
    uvicorn.run(
        "schedtrack.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
    )


if __name__ == "__main__":
    app()

"""Ledgerflow CLI application using Typer.

Command-line access to the import engine: import a CSV file into an
account and inspect import jobs, without going through the HTTP API.
"""

import asyncio
from pathlib import Path
from typing import Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Table
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ledgerflow.application.context import UserContext
from ledgerflow.application.dtos.imports import (
    ImportJobStatusDTO,
    SyncImportResult,
    UploadSource,
)
from ledgerflow.application.ports import JobChangeNotifier, JobScheduler
from ledgerflow.application.queries import GetImportJobQuery
from ledgerflow.application.services import ImportOrchestrator, ImportSettings
from ledgerflow.domain.shared.exceptions import DomainException
from ledgerflow.infrastructure.parsers import CsvUploadParser
from ledgerflow.infrastructure.persistence.sqlalchemy.init_db import create_tables
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)
from ledgerflow_config.settings import get_settings

app = typer.Typer(
    name="ledgerflow",
    help="Ledgerflow - transaction import engine CLI",
    no_args_is_help=True,
)
console = Console()


class _DeferredScheduler(JobScheduler):
    """Remembers scheduled jobs so the CLI can run them in the foreground."""

    def __init__(self) -> None:
        self.scheduled: list[UUID] = []

    def schedule(self, job_id: UUID, user_context: UserContext) -> None:
        self.scheduled.append(job_id)


class _ProgressNotifier(JobChangeNotifier):
    """Drives a rich progress bar from job snapshots."""

    def __init__(self, progress: Progress, task_id: TaskID):
        self._progress = progress
        self._task_id = task_id

    async def publish(self, snapshot: ImportJobStatusDTO) -> None:
        self._progress.update(
            self._task_id,
            total=max(snapshot.total_items, 1),
            completed=snapshot.processed_items,
            status=snapshot.status,
        )


def _create_engine() -> AsyncEngine:
    return create_async_engine(get_settings().database_url, echo=False)


def _session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _print_result(result: SyncImportResult | ImportJobStatusDTO) -> None:
    table = Table(title="Import result", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    if isinstance(result, ImportJobStatusDTO):
        table.add_row("Job", str(result.job_id))
        table.add_row("Status", result.status)
        if result.error_message:
            table.add_row("Error", f"[red]{result.error_message}[/red]")
    table.add_row("Total", str(result.total_items))
    table.add_row("Processed", str(result.processed_items))
    table.add_row("Synced", f"[green]{result.synced_items}[/green]")
    table.add_row("Skipped", f"[yellow]{result.skipped_items}[/yellow]")
    table.add_row("Errors", f"[red]{result.error_items}[/red]")
    console.print(table)


async def _import_csv(
    path: Path,
    user_context: UserContext,
    account_id: Optional[UUID],
    force_async: bool,
) -> None:
    records = CsvUploadParser().parse(path.read_bytes())
    console.print(f"Read [bold]{len(records)}[/bold] records from {path.name}")

    engine = _create_engine()
    session_maker = _session_maker(engine)
    await create_tables(engine)

    scheduler = _DeferredScheduler()
    try:
        outcome = await _run_with_progress(
            session_maker,
            user_context,
            UploadSource(records=records, account_id=account_id),
            scheduler,
            force_async,
        )
    finally:
        await engine.dispose()
    _print_result(outcome)


async def _run_with_progress(
    session_maker: async_sessionmaker[AsyncSession],
    user_context: UserContext,
    source: UploadSource,
    scheduler: JobScheduler,
    force_async: bool,
) -> SyncImportResult | ImportJobStatusDTO:
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TextColumn("{task.fields[status]}"),
        console=console,
    ) as progress:
        task_id = progress.add_task(
            "Importing",
            total=len(source.records),
            status="",
        )
        async with session_maker() as session:
            factory = SQLAlchemyRepositoryFactory(session, user_context)
            orchestrator = ImportOrchestrator.from_factory(
                factory,
                scheduler=scheduler,
                notifier=_ProgressNotifier(progress, task_id),
                settings=ImportSettings.from_settings(get_settings()),
            )
            started = await orchestrator.start_import(
                source,
                force_async=force_async,
            )
            if started.is_background:
                job = await orchestrator.run_job(started.job_id)
                return ImportJobStatusDTO.from_entity(job)

            progress.update(task_id, completed=started.sync_result.processed_items)
            return started.sync_result


async def _job_status(job_id: UUID, user_context: UserContext) -> None:
    engine = _create_engine()
    try:
        async with _session_maker(engine)() as session:
            factory = SQLAlchemyRepositoryFactory(session, user_context)
            snapshot = await GetImportJobQuery.from_factory(factory).execute(job_id)
    finally:
        await engine.dispose()
    _print_result(snapshot)


@app.command("import-csv")
def import_csv(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    user_id: UUID = typer.Option(..., "--user-id", help="Owner of the import"),
    account_id: Optional[UUID] = typer.Option(
        None,
        "--account-id",
        help="Target account; omit to route rows by their account column",
    ),
    household_id: Optional[UUID] = typer.Option(None, "--household-id"),
    force_async: bool = typer.Option(
        False,
        "--job",
        help="Track the import as a persisted job even below the threshold",
    ),
) -> None:
    """Import a CSV file of transactions into the ledger."""
    user_context = UserContext.from_values(user_id, household_id)
    try:
        asyncio.run(_import_csv(path, user_context, account_id, force_async))
    except DomainException as e:
        console.print(f"[red]Import failed:[/red] {e.message} ({e.code.value})")
        raise typer.Exit(code=1) from e


@app.command("job-status")
def job_status(
    job_id: UUID = typer.Argument(...),
    user_id: UUID = typer.Option(..., "--user-id"),
) -> None:
    """Show the persisted progress of an import job."""
    try:
        asyncio.run(_job_status(job_id, UserContext.from_values(user_id)))
    except DomainException as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1) from e


@app.command("db-init")
def db_init() -> None:
    """Create missing database tables."""
    asyncio.run(create_tables())
    console.print("[green]Database schema is up to date[/green]")


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()

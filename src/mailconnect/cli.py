"""Command-line interface for MailConnect.

This module provides the CLI commands for running the server and for
managing the mail log from a shell.
"""

import asyncio
from typing import Any, Awaitable, Callable, NoReturn, TypeVar

import click

from mailconnect import __version__
from mailconnect.core.config import get_settings
from mailconnect.core.logging import configure_logging, get_logger
from mailconnect.infrastructure.persistence.database import get_db_manager, init_database
from mailconnect.infrastructure.services import MailServices, build_mail_services
from mailconnect.infrastructure.services.mailer import InvalidRecipientError

T = TypeVar("T")


def _run(action: Callable[[MailServices], Awaitable[T]]) -> T:
    """Run an async action against freshly wired services, then disconnect."""
    configure_logging(get_settings())

    async def runner() -> T:
        db = get_db_manager()
        try:
            services = build_mail_services(db.session_factory)
            return await action(services)
        finally:
            await db.disconnect()

    return asyncio.run(runner())


@click.group()
@click.version_option(version=__version__, prog_name="MailConnect")
def cli() -> None:
    """MailConnect - SMTP relay with a durable mail send log."""


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development")
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the MailConnect server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting MailConnect server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "mailconnect.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates the mail log table. In production, use the Alembic migrations
    instead.
    """
    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        try:
            await init_database()
            click.echo("Database initialized successfully.")
        finally:
            await get_db_manager().disconnect()

    asyncio.run(initialize())


@cli.command()
@click.argument("recipient")
def send_test(recipient: str) -> None:
    """Send a test email to RECIPIENT with the current relay settings."""

    async def send(services: MailServices) -> tuple[bool, str | None]:
        return await services.mailer.send_test_email(recipient)

    try:
        success, error = _run(send)
    except InvalidRecipientError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2)

    if not success:
        click.echo(f"Failed to send test email: {error}", err=True)
        raise SystemExit(1)

    click.echo(f"Test email sent to {recipient}.")


@cli.group()
def logs() -> None:
    """Inspect and manage the mail log."""


@logs.command("list")
@click.option(
    "--status",
    type=click.Choice(["pending", "success", "failed"]),
    default=None,
    help="Only show rows with this status",
)
@click.option("--search", type=str, default=None, help="Substring match on recipients")
@click.option("--limit", type=int, default=20, show_default=True, help="Maximum rows to show")
@click.option("--offset", type=int, default=0, show_default=True, help="Rows to skip")
def list_logs(status: str | None, search: str | None, limit: int, offset: int) -> None:
    """List mail log rows, newest first."""

    async def fetch(services: MailServices) -> tuple[list[Any], int]:
        rows = await services.log_service.list_logs(
            limit=limit, offset=offset, status=status, search=search
        )
        total = await services.log_service.count_logs(status=status, search=search)
        return rows, total

    rows, total = _run(fetch)

    if not rows:
        click.echo("No mail log entries found.")
        return

    for row in rows:
        created = row.created_at.strftime("%Y-%m-%d %H:%M:%S") if row.created_at else "-"
        click.echo(f"{row.id:>6}  {created}  {row.status:<8}  {row.recipients}  {row.subject}")
        if row.error_message:
            click.echo(f"        error: {row.error_message}")

    click.echo(f"\nShowing {len(rows)} of {total} entries.")


@logs.command("clear")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
def clear_logs(yes: bool) -> None:
    """Delete every mail log row."""
    if not yes:
        click.confirm("This will permanently delete all mail logs. Continue?", abort=True)

    async def clear(services: MailServices) -> bool:
        return await services.log_service.clear_all_logs()

    _run(clear)
    click.echo("Mail log cleared.")


@cli.command()
def cleanup() -> None:
    """Run the retention sweep once."""

    async def sweep(services: MailServices) -> int:
        return await services.log_service.run_retention_sweep()

    deleted = _run(sweep)
    click.echo(f"Deleted {deleted} expired mail log entries.")


@cli.command()
def info() -> None:
    """Display MailConnect configuration."""
    from mailconnect.core.options import MailOptions

    settings = get_settings()
    options = MailOptions()

    click.echo(f"""
MailConnect v{settings.app_version}
{'=' * 40}

Server:
  Environment:  {settings.environment}
  Host:         {settings.host}
  Port:         {settings.port}

Database:
  URL:          {settings.database_url}

Mail log:
  Enabled:      {options.enable_log}
  Retention:    {options.log_retention_days} days
  Schedule:     every {settings.cleanup_interval_seconds}s ({'on' if settings.cleanup_schedule_enabled else 'off'})

SMTP relay:
  Active:       {options.relay_enabled}
  Host:         {options.smtp_host}:{options.smtp_port}
  Security:     {options.smtp_secure or 'none'}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `mailconnect` command is run
    or when using `python -m mailconnect`.
    """
    cli()


if __name__ == "__main__":
    main()

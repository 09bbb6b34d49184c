"""
Command-line interface for the license server.
"""

from __future__ import annotations

import json
import os

import click

from boundlic.client.client import AdminClient
from boundlic.common.config import Config
from boundlic.common.exceptions import LicenseError
from boundlic.server import start_server
from boundlic.server.audit import ActivationAuditLog
from boundlic.server.database import Database

admin_options = [
    click.option(
        "--server-url",
        envvar="BOUNDLIC_SERVER_URL",
        default=None,
        help="License server URL (default: from BOUNDLIC_SERVER_HOST/PORT)",
    ),
    click.option(
        "--admin-key",
        envvar="BOUNDLIC_ADMIN_KEY",
        required=True,
        help="Administrative secret (env: BOUNDLIC_ADMIN_KEY)",
    ),
]


def with_admin_options(func):
    for option in reversed(admin_options):
        func = option(func)
    return func


def _echo_json(data: object) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


@click.group()
def cli() -> None:
    """Machine-bound license server CLI"""


@cli.command()
@click.option(
    "--host",
    default=None,
    help="Host to bind server to (default: from BOUNDLIC_SERVER_HOST env or 127.0.0.1)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind server to (default: from BOUNDLIC_SERVER_PORT env or 8000)",
)
@click.option(
    "--database-url",
    default=None,
    help="SQLAlchemy database URL (default: from BOUNDLIC_DATABASE_URL env)",
)
def serve(host: str | None, port: int | None, database_url: str | None) -> None:
    """Start the license server"""
    # Set environment variables before building the config
    if host:
        os.environ["BOUNDLIC_SERVER_HOST"] = host
    if port:
        os.environ["BOUNDLIC_SERVER_PORT"] = str(port)
    if database_url:
        os.environ["BOUNDLIC_DATABASE_URL"] = database_url

    config = Config()
    if not config.ADMIN_KEY:
        msg = "ERROR: BOUNDLIC_ADMIN_KEY env var must be set to a secure secret."
        raise click.ClickException(msg)

    start_server(config)


@cli.command("init-db")
@click.option("--database-url", default=None, help="SQLAlchemy database URL")
def init_db(database_url: str | None) -> None:
    """Create the license tables"""
    database = Database(database_url or Config().DATABASE_URL)
    database.create_all()
    database.dispose()
    click.echo("Database initialized")


@cli.command("purge-logs")
@click.option(
    "--older-than-days",
    required=True,
    type=click.IntRange(min=0),
    help="Delete activation log entries older than this many days",
)
@click.option("--database-url", default=None, help="SQLAlchemy database URL")
def purge_logs(older_than_days: int, database_url: str | None) -> None:
    """Delete old activation log entries"""
    database = Database(database_url or Config().DATABASE_URL)
    removed = ActivationAuditLog(database).purge(older_than_days)
    database.dispose()
    click.echo(f"Removed {removed} log entries")


@cli.command()
@with_admin_options
@click.option("--client-name", required=True, help="Licensee name")
@click.option("--expires-at", required=True, help="Expiry date (YYYY-MM-DD)")
@click.option("--client-email", default=None, help="Licensee email")
@click.option("--notes", default=None, help="Free-form administrative notes")
def create(
    server_url: str | None,
    admin_key: str,
    client_name: str,
    expires_at: str,
    client_email: str | None,
    notes: str | None,
) -> None:
    """Create a license and print its key"""
    client = AdminClient(admin_key, server_url=server_url)
    try:
        created = client.create_license(client_name, expires_at, client_email, notes)
    except LicenseError as e:
        raise click.ClickException(str(e)) from e
    click.echo(created.license_key)


@cli.command("list")
@with_admin_options
@click.option("--limit", default=None, type=click.IntRange(min=1))
@click.option("--offset", default=0, type=click.IntRange(min=0))
def list_command(
    server_url: str | None, admin_key: str, limit: int | None, offset: int
) -> None:
    """List licenses, newest first"""
    client = AdminClient(admin_key, server_url=server_url)
    try:
        licenses = client.list_licenses(limit=limit, offset=offset)
    except LicenseError as e:
        raise click.ClickException(str(e)) from e
    _echo_json([lic.model_dump(mode="json") for lic in licenses])


@cli.command("reset-machine")
@with_admin_options
@click.argument("license_key")
def reset_machine(server_url: str | None, admin_key: str, license_key: str) -> None:
    """Unbind a license from its machine"""
    client = AdminClient(admin_key, server_url=server_url)
    try:
        client.reset_machine(license_key)
    except LicenseError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Machine reset for {license_key.strip().upper()}")


@cli.command()
@with_admin_options
@click.option("--license-key", default=None, help="Only entries for this key")
@click.option("--limit", default=None, type=click.IntRange(min=1))
def logs(
    server_url: str | None,
    admin_key: str,
    license_key: str | None,
    limit: int | None,
) -> None:
    """Show activation log entries"""
    client = AdminClient(admin_key, server_url=server_url)
    try:
        entries = client.list_logs(license_key=license_key, limit=limit)
    except LicenseError as e:
        raise click.ClickException(str(e)) from e
    _echo_json([entry.model_dump(mode="json") for entry in entries])


if __name__ == "__main__":
    cli()

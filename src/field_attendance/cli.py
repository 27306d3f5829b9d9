from __future__ import annotations

import click
from flask import Flask

from .container import Container
from .core.enums import Role
from .database.bootstrap import ensure_indexes
from .users.model import Principal


def register(app: Flask, container: Container) -> None:
    @app.cli.command("init-db")
    def init_db():
        """Create the attendance and outbox indexes."""
        if container.conn is None:
            raise click.ClickException("No database configured")
        for name in ensure_indexes(container.conn):
            click.echo(f"index {name}")

    @app.cli.command("backfill-addresses")
    @click.option("--delay", default=1.2, show_default=True, help="Seconds between geocoder calls.")
    def backfill_addresses(delay: float):
        """Re-geocode records whose address is empty or a fallback."""
        result = container.attendance_service.backfill_addresses(delay_seconds=delay)
        click.echo(f"Geocoded: {result.geocoded}  Fallback: {result.fallback}  Total: {result.total}")

    @app.cli.command("replication-drain")
    @click.option("--limit", default=500, show_default=True)
    def replication_drain(limit: int):
        """Retry secondary writes parked in the replication outbox."""
        if container.outbox is None or container.replicator is None:
            raise click.ClickException("Replication outbox is disabled")
        if not container.replicator.enabled:
            raise click.ClickException("Secondary DB not configured")
        result = container.outbox.drain(container.replicator, limit=limit)
        click.echo(f"Replicated: {result.replicated}  Still pending: {result.failed}")

    @app.cli.command("issue-token")
    @click.option("--user-id", required=True)
    @click.option("--employee-id", required=True)
    @click.option("--name", default="")
    @click.option("--admin", is_flag=True, default=False)
    def issue_token(user_id: str, employee_id: str, name: str, admin: bool):
        """Print a bearer token for the given identity."""
        principal = Principal(
            user_id=user_id,
            employee_id=employee_id,
            name=name,
            role=Role.ADMIN if admin else Role.EMPLOYEE,
        )
        click.echo(container.token_service.issue(principal))

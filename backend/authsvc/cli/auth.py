"""Flask CLI commands for schema bootstrap and account administration."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from authsvc.core.extensions import db
from authsvc.models.user import coerce_role
from authsvc.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("auth")
def auth_cli() -> None:
    """Authentication service maintenance commands."""


@auth_cli.command("init-db")
@with_appcontext
def init_db_command() -> None:
    """Create the ``users`` and ``refresh_tokens`` tables if missing."""
    LOGGER.info("Creating database schema...")
    try:
        db.create_all()
    except SQLAlchemyError as exc:  # pragma: no cover - CLI safeguard
        raise click.ClickException(f"Schema creation failed: {exc}") from exc
    click.echo("Database schema ready.")


@auth_cli.command("set-role")
@click.argument("email")
@click.argument("role")
@with_appcontext
def set_role_command(email: str, role: str) -> None:
    """Assign ROLE (client, admin, or a legacy alias) to the user with EMAIL."""
    try:
        resolved = coerce_role(role)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="ROLE") from exc

    with SQLAlchemyUnitOfWork() as uow:
        user = uow.users.get_by_email(email, for_update=True)
        if user is None:
            raise click.ClickException(f"No user with email {email!r}.")
        user.role = resolved
        uow.users.flush()
        user_id = user.id

    LOGGER.info(
        "users.role_changed",
        extra={"user_id": user_id, "role": resolved.value, "actor_id": "cli"},
    )
    click.echo(f"{email} is now {resolved.value}.")

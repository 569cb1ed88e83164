# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/farmbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their record counts.
# - python -m flask users create --username alice --password "secret"
#   Create a user (prompts if options are omitted).
#
# Maintenance:
# - python -m flask maintenance orphan-blobs [--delete] [--grace-minutes 60]
#   List (or delete) stored images no sale or note refers to.

import click
from flask.cli import with_appcontext
from sqlalchemy import func

from .extensions import db
from .models import Expense, Note, Sale, User
from .services import auth_service
from .services import maintenance_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left untouched)."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(username, password):
    """Create a new user (same rules as self-registration)."""
    try:
        user = auth_service.register_user(username, password)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user '{user.username}' (ID: {user.id})")


def _counts_by_user(model) -> dict[int, int]:
    rows = db.session.query(model.user_id, func.count(model.id)).group_by(model.user_id).all()
    return {user_id: count for user_id, count in rows}


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their record counts."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    sales = _counts_by_user(Sale)
    notes = _counts_by_user(Note)
    expenses = _counts_by_user(Expense)

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Username':<25} {'Sales':<8} {'Notes':<8} {'Expenses':<9} {'Created'}")
    click.echo("="*70)

    for user in users:
        created = user.created_at.strftime("%Y-%m-%d") if user.created_at else "-"
        click.echo(
            f"{user.id:<5} {user.username:<25} {sales.get(user.id, 0):<8} "
            f"{notes.get(user.id, 0):<8} {expenses.get(user.id, 0):<9} {created}"
        )

    click.echo("="*70 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('orphan-blobs')
@click.option('--delete', 'do_delete', is_flag=True, help='Delete the orphans instead of listing them')
@click.option('--grace-minutes', type=int, default=60, show_default=True,
              help='Skip blobs uploaded more recently than this')
@with_appcontext
def orphan_blobs_cli(do_delete, grace_minutes):
    """
    Find stored images that no sale or note refers to.

    Orphans are left behind when a process dies between writing an image
    and writing (or deleting) the row that refers to it.
    """
    if do_delete:
        keys = maintenance_service.delete_orphan_blobs(grace_minutes=grace_minutes)
        for key in keys:
            click.echo(f"DELETE {key}")
        click.echo(f"Deleted {len(keys)} orphaned blobs.")
        return

    keys = maintenance_service.find_orphan_blobs(grace_minutes=grace_minutes)
    for key in keys:
        click.echo(key)
    click.echo(f"Found {len(keys)} orphaned blobs.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)

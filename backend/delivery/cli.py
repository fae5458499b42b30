# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/delivery/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates missing tables and the default admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Schema migrations (Flask-Migrate):
# - python -m flask db upgrade
#   Apply migrations in backend/migrations.
#
# User inspection/bootstrap:
# - python -m flask users list [--role courier] [--all]
#   List users with role and active status.
# - python -m flask users create --username ali --password "secret1" --full-name "Ali Courier" --role courier
#   Create a user (prompts if options are omitted).

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .errors import DeliveryError
from .models import Role
from .services import auth_service
from .services.bootstrap_service import init_database


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create missing tables and the default admin account.

    Default admin: username "admin", password from DEFAULT_ADMIN_PASSWORD.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing delivery system...")

    if init_database():
        click.echo(
            f"PASS Created default admin '{auth_service.DEFAULT_ADMIN_USERNAME}' "
            f"(password from DEFAULT_ADMIN_PASSWORD)"
        )
    else:
        click.echo(f"PASS Admin '{auth_service.DEFAULT_ADMIN_USERNAME}' already exists")

    click.echo("PASS System initialized")


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

    current_app.logger.warning("Database reset from CLI")
    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--role', type=click.Choice([r.value for r in Role]), prompt=True, help='Role')
@click.option('--phone', default=None, help='Phone number')
@with_appcontext
def create_user_cli(username, password, full_name, role, phone):
    """Create a new user."""
    try:
        user = auth_service.create_user(
            username=username,
            password=password,
            full_name=full_name,
            role=role,
            phone=phone,
        )
    except DeliveryError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user '{user.username}' (ID: {user.id}, role: {user.role.value})")


@users_group.command('list')
@click.option('--role', type=click.Choice([r.value for r in Role]), help='Filter by role')
@click.option('--all', 'show_all', is_flag=True, help='Show inactive users too')
@with_appcontext
def list_users(role, show_all):
    """List users with their roles."""
    users = auth_service.list_users(include_inactive=show_all, role=role)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Full name':<30} {'Role':<10} {'Active'}")
    click.echo("="*80)

    for user in users:
        active = "Yes" if user.is_active else "No"
        click.echo(
            f"{user.id:<5} {user.username:<20} {user.full_name[:30]:<30} {user.role.value:<10} {active}"
        )

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)

# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/pharmapos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin and employee accounts.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --email admin@pharmapos.local --name "Admin" --password "Password123!" --role admin
#   Create a user (prompts if options are omitted).
# - python -m flask users deactivate --email cashier@pharmapos.local
#   Deactivate an account and revoke its sessions.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked session tokens older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import ROLES
from .services import session_service
from .services.auth_service import create_user, PasswordValidationError
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("admin@pharmapos.local", "Administrator", "admin"),
    ("cashier@pharmapos.local", "Cashier", "employee"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables (if missing) and the default accounts.

    Default users: admin@pharmapos.local (admin), cashier@pharmapos.local
    (employee). Password for both: "Password123!".

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing PharmaPOS...")
    db.create_all()

    for email, name, role in DEFAULT_USERS:
        existing = db.session.query(User).filter_by(email=email).first()
        if existing:
            click.echo(f"SKIP User {email} already exists")
            continue
        user = create_user(email=email, name=name, password=DEFAULT_PASSWORD, role=role)
        click.echo(f"PASS Created {role} user {user.email} (ID: {user.id})")

    click.echo("PASS Initialization complete.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """
    Create a new staff account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(email=email, name=name, password=password, role=role)
    except (PasswordValidationError, ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created {user.role} user {user.email} (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<32} {'Name':<20} {'Role':<10} {'Active'}")
    click.echo("="*80)

    for user in users:
        click.echo(
            f"{user.id:<5} {user.email:<32} {user.name:<20} {user.role:<10} "
            f"{'yes' if user.is_active else 'no'}"
        )


@users_group.command('deactivate')
@click.option('--email', prompt=True, help='Email address')
@with_appcontext
def deactivate_user_cli(email):
    """Deactivate an account and revoke all of its sessions."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"User {email} not found")

    user.is_active = False
    db.session.commit()
    revoked = session_service.revoke_all_user_sessions(user.id, reason="User deactivated")
    click.echo(f"PASS Deactivated {user.email}; revoked {revoked} session(s)")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired or revoked session tokens older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} old session tokens.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)

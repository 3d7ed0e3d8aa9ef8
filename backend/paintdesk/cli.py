# Overview: Flask CLI command groups for bootstrap, user inspection, and maintenance.

# backend/paintdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask db upgrade
#   Apply pending Alembic migrations (Flask-Migrate).
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates the default admin if no admin exists.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role user] [--all]
#   List staff users with roles and active status.
# - python -m flask users create --username tech7 --email tech7@shop.local --password "Secret123" --role user
#   Create a staff user (prompts if options are omitted).
# - python -m flask users deactivate tech7
#   Deactivate a user and revoke all their sessions.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired session rows.

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import DomainError
from .models import User
from .services.auth_service import create_user, ensure_bootstrap_admin, set_user_active, PasswordValidationError
from .services import session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the system: ensure a default administrator exists.

    Creates admin / admin@example.com / admin123 (or BOOTSTRAP_ADMIN_*)
    only when no admin account exists yet. Safe to run repeatedly.

    SECURITY: Change the password immediately in production!
    """
    click.echo("START Initializing PaintDesk...")

    admin = ensure_bootstrap_admin()
    if admin is not None:
        click.echo(f"PASS Created default admin: {admin.username} ({admin.email})")
        click.echo("WARN Default credentials in use; change the password before going live")
    else:
        click.echo("PASS Admin account already present")

    click.echo("DONE System initialized")


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
    """Staff user inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--role', type=click.Choice(['admin', 'user']), help='Filter by role')
@click.option('--all', 'include_inactive', is_flag=True, help='Include deactivated users')
@with_appcontext
def list_users(role, include_inactive):
    """List staff users with role and active status."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    if not include_inactive:
        query = query.filter_by(is_active=True)

    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Role':<8} {'Active'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {user.role:<8} {active_str}")

    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'user']), default='user', show_default=True, help='Role')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(username, email, password, role, full_name):
    """
    Create a new staff user.

    Password must be at least 8 characters with at least one letter and one digit.
    """
    try:
        user = create_user(username, email, password, role, full_name=full_name)
        click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{user.role}'")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, at least one letter and one digit")
    except DomainError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('deactivate')
@click.argument('username')
@with_appcontext
def deactivate_user_cli(username):
    """Deactivate a user by username and revoke all their sessions."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
        return

    set_user_active(user.id, False)
    click.echo(f"PASS Deactivated user: {username}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired session rows (validation already ignores them)."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)

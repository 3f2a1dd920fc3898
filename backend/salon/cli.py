# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/salon/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init --email owner@salon.local --full-name "Owner"
#   Idempotent bootstrap: creates tables, seeds categories, creates the first admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff inspection/bootstrap:
# - python -m flask users list
#   List all profiles with role and active status.
# - python -m flask users create --email jo@salon.local --full-name "Jo" --password "Password123!" --role employee
#   Create a profile (prompts if options are omitted).
#
# Catalog:
# - python -m flask catalog seed-categories
#   Insert the default service categories that are missing.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Profile, ROLE_ADMIN, ROLES
from .services.auth_service import create_profile, PasswordValidationError
from .services.catalog_service import seed_default_categories
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default='admin@salon.local', help='Email of the first admin')
@click.option('--full-name', default='Salon Admin', help='Display name of the first admin')
@click.option('--password', default='Password123!', help='Password of the first admin')
@with_appcontext
def init_system(email, full_name, password):
    """
    Initialize the salon back office: schema, default categories and first admin.

    Safe to run more than once; existing rows are left alone.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing salon system...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = seed_default_categories()
    click.echo(f"PASS Seeded {created} service categories")

    existing_admin = db.session.query(Profile).filter_by(role=ROLE_ADMIN).first()
    if existing_admin:
        click.echo(f"WARN  Admin already exists ({existing_admin.email}), skipping...")
    else:
        try:
            profile = create_profile(
                email=email,
                password=password,
                full_name=full_name,
                role=ROLE_ADMIN,
            )
            click.echo(f"PASS Created admin: {profile.full_name} ({profile.email})")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed: {str(e)}")
            return
        except (ValidationError, ConflictError) as e:
            click.echo(f"FAIL Failed to create admin: {str(e)}")
            return

    click.echo("\n" + "="*60)
    click.echo("DONE Salon System Initialized Successfully!")
    click.echo("="*60)


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
    """Staff profile management commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default='employee', prompt=True, help='Role')
@click.option('--phone', default=None, help='Phone number')
@with_appcontext
def create_user_cli(email, full_name, password, role, phone):
    """
    Create a staff profile.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        profile = create_profile(
            email=email,
            password=password,
            full_name=full_name,
            phone=phone,
            role=role,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Created profile: {profile.full_name} ({profile.email}) with role '{profile.role}'")


@users_group.command('list')
@click.option('--include-inactive/--active-only', default=True, help='Include deactivated profiles')
@with_appcontext
def list_users(include_inactive):
    """List all profiles with their roles."""
    query = db.session.query(Profile)
    if not include_inactive:
        query = query.filter(Profile.active.is_(True))

    profiles = query.order_by(Profile.id).all()

    if not profiles:
        click.echo("No profiles found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Role':<10} {'Active'}")
    click.echo("="*90)

    for profile in profiles:
        active_str = "Yes" if profile.active else "No"
        click.echo(f"{profile.id:<5} {profile.full_name:<25} {profile.email:<35} {profile.role:<10} {active_str}")

    click.echo("="*90 + "\n")


@click.group('catalog')
def catalog_group():
    """Service catalog commands."""


@catalog_group.command('seed-categories')
@with_appcontext
def seed_categories():
    """Insert the default service categories that are missing."""
    created = seed_default_categories()
    click.echo(f"PASS Seeded {created} service categories")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)

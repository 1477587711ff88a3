# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init --admin-email admin@example.com --admin-password "Password123!"
#   Idempotent bootstrap: tables, permissions, roles, default customer and a first admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email ana@example.com --role employee
#   Create a user (prompts if options are omitted).
# - python -m flask users list
#
# Permissions:
# - python -m flask perms list [--role employee | --category SALES]
# - python -m flask perms grant employee EXPORT_SALES
# - python -m flask perms revoke employee EXPORT_SALES

import click
from flask.cli import with_appcontext

from .errors import ServiceError
from .extensions import db
from .models import Permission, Role, User
from .permissions import DEFAULT_ROLES, validate_permission_code
from .services import auth_service, customer_service, permission_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-name', default='System', show_default=True)
@click.option('--admin-lastname', default='Administrator', show_default=True)
@click.option('--admin-phone', default='0000000000', show_default=True)
@click.option('--admin-email', default='admin@example.com', show_default=True)
@click.option('--admin-password', default='Password123!', show_default=True)
@with_appcontext
def init_system(admin_name, admin_lastname, admin_phone, admin_email, admin_password):
    """
    Initialize the system.

    Creates missing tables, the permission catalog, the default roles with
    their default permissions, the walk-in customer and a first admin user.
    Safe to run more than once.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing system...")
    db.create_all()

    perm_count = permission_service.initialize_permissions()
    click.echo(f"PASS Created {perm_count} permissions")

    roles = auth_service.create_default_roles()
    click.echo(f"PASS Roles available: {', '.join(r.name for r in roles)}")

    assignment_count = permission_service.assign_default_role_permissions()
    click.echo(f"PASS Created {assignment_count} role-permission assignments")

    customer = customer_service.get_default_customer()
    click.echo(f"PASS Default customer: {customer.code} ({customer.email})")

    if db.session.query(User).filter_by(email=admin_email.strip().lower()).first():
        click.echo(f"WARN  User '{admin_email}' already exists, skipping...")
    else:
        admin_role = db.session.query(Role).filter_by(name="admin").one()
        try:
            auth_service.create_user(
                name=admin_name,
                lastname=admin_lastname,
                contact_number=admin_phone,
                email=admin_email,
                password=admin_password,
                role_id=admin_role.id,
            )
        except ServiceError as e:
            raise click.ClickException(_describe(e))
        click.echo(f"PASS Created admin user: {admin_email}")

    click.echo("\nDONE System initialized")


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
@click.option('--name', prompt=True)
@click.option('--lastname', prompt=True)
@click.option('--contact-number', prompt=True, help='Digits only')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(DEFAULT_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, lastname, contact_number, email, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    role_obj = db.session.query(Role).filter_by(name=role).first()
    if not role_obj:
        raise click.ClickException(f"Role '{role}' not found. Run 'python -m flask system init' first.")

    try:
        user = auth_service.create_user(
            name=name,
            lastname=lastname,
            contact_number=contact_number,
            email=email,
            password=password,
            role_id=role_obj.id,
        )
    except ServiceError as e:
        raise click.ClickException(_describe(e))

    click.echo(f"PASS Created user: {user.email} with role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Name':<30} {'Email':<35} {'Active':<8} {'Role'}")
    click.echo("=" * 90)
    for user in users:
        full_name = f"{user.name} {user.lastname}"
        active_str = "Yes" if user.is_active else "No"
        role_name = user.role.name if user.role else "none"
        click.echo(f"{user.id:<5} {full_name:<30} {user.email:<35} {active_str:<8} {role_name}")
    click.echo("=" * 90 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection and repair commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_permissions_cli(role, category):
    """List permissions, optionally for one role or one category."""
    query = db.session.query(Permission)
    if role:
        role_obj = db.session.query(Role).filter_by(name=role).first()
        if not role_obj:
            raise click.ClickException(f"Role '{role}' not found")
        query = query.filter(Permission.code.in_(role_obj.permission_codes))
        click.echo(f"\nPermissions for role: {role.upper()}")
    if category:
        query = query.filter_by(category=category.upper())

    perms = query.order_by(Permission.category, Permission.code).all()

    current_category = None
    for perm in perms:
        if perm.category != current_category:
            click.echo(f"\nCATEGORY {perm.category}")
            click.echo("-" * 70)
            current_category = perm.category
        click.echo(f"  {perm.code:<28} {perm.name}")

    click.echo(f"\n Total: {len(perms)} permissions\n")


def _role_and_code(role_name, permission_code):
    role = db.session.query(Role).filter_by(name=role_name).first()
    if not role:
        raise click.ClickException(f"Role '{role_name}' not found")
    if not validate_permission_code(permission_code):
        raise click.ClickException(f"Unknown permission '{permission_code}'")
    return role, permission_code


@perms_group.command('grant')
@click.argument('role_name')
@click.argument('permission_code')
@with_appcontext
def grant_permission_cli(role_name, permission_code):
    role, code = _role_and_code(role_name, permission_code)
    permission_service.set_role_permissions(role, set(role.permission_codes) | {code})
    db.session.commit()
    click.echo(f"PASS Granted {code} to {role.name}")


@perms_group.command('revoke')
@click.argument('role_name')
@click.argument('permission_code')
@with_appcontext
def revoke_permission_cli(role_name, permission_code):
    role, code = _role_and_code(role_name, permission_code)
    if role.name == "admin":
        raise click.ClickException("The admin role cannot be modified")
    permission_service.set_role_permissions(role, set(role.permission_codes) - {code})
    db.session.commit()
    click.echo(f"PASS Revoked {code} from {role.name}")


def _describe(error: ServiceError) -> str:
    if error.errors:
        return f"{error.message}: {'; '.join(error.errors)}"
    return error.message


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)

# Overview: Flask CLI command groups for bootstrap, seeding, and maintenance.

# backend/avenue/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email admin@avenue.local --name Admin --password "Password123" --role admin
#   Create an account (prompts if options are omitted).
# - python -m flask users set-role shopper@example.com admin
# - python -m flask users deactivate shopper@example.com
#   Deactivate an account and revoke all of its sessions.
#
# Locations:
# - python -m flask geo seed
#   Seed Kenya with a few counties and cities (safe to re-run).
#
# Orders:
# - python -m flask orders create --email shopper@example.com --subtotal 4500 [--address-id 3]
# - python -m flask orders set-status ORD-0123456789 "In transit" --note "Handed to courier"
#
# Push:
# - python -m flask push list [--email shopper@example.com]
# - python -m flask push prune https://push.example/endpoint
#   Remove an endpoint the push service reported as gone (404/410).

import json

import click
from flask.cli import with_appcontext

from .errors import StorefrontError
from .extensions import db
from .models import City, Country, County, User
from .models.auth import ROLES
from .services import auth_service, order_service, push_subscription_service, session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask geo seed' to load locations.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


def _find_user(email: str) -> User:
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        raise click.ClickException(f"No user with email {email}")
    return user


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ROLES), default='customer', show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """
    Create a new account.

    Password must be at least 8 characters with at least one letter and
    one digit.
    """
    try:
        user = auth_service.create_user(email=email, name=name, password=password, role=role)
    except auth_service.PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e.message}")
    except StorefrontError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice(ROLES))
@with_appcontext
def set_role_cli(email, role):
    user = _find_user(email)
    auth_service.set_role(user, role)
    click.echo(f"PASS {user.email} is now '{role}'")


@users_group.command('deactivate')
@click.argument('email')
@with_appcontext
def deactivate_user_cli(email):
    """Deactivate an account and revoke its sessions."""
    user = _find_user(email)
    user.is_active = False
    db.session.commit()
    revoked = session_service.revoke_all_user_sessions(user.id, reason="Account deactivated")
    click.echo(f"PASS Deactivated {user.email}; revoked {revoked} session(s)")


@click.group('geo')
def geo_group():
    """Location hierarchy commands."""


# country -> county -> [(city, delivery fee in KES)]
SEED_LOCATIONS = {
    "Kenya": {
        "Nairobi": [("Westlands", 250), ("Kilimani", 250), ("Karen", 350), ("Embakasi", 300)],
        "Mombasa": [("Nyali", 450), ("Mombasa Island", 400), ("Likoni", 500)],
        "Kiambu": [("Thika", 400), ("Ruiru", 350), ("Kiambu Town", 350)],
        "Nakuru": [("Nakuru Town", 500), ("Naivasha", 550)],
        "Kisumu": [("Kisumu Central", 600)],
    },
}


@geo_group.command('seed')
@with_appcontext
def seed_locations():
    """Seed the default location hierarchy. Existing rows are left as they are."""
    created = 0
    for country_name, counties in SEED_LOCATIONS.items():
        country = db.session.query(Country).filter_by(name=country_name).first()
        if not country:
            country = Country(name=country_name, is_active=True)
            db.session.add(country)
            db.session.flush()
            created += 1

        for county_name, cities in counties.items():
            county = db.session.query(County).filter_by(country_id=country.id, name=county_name).first()
            if not county:
                county = County(name=county_name, country_id=country.id, is_active=True)
                db.session.add(county)
                db.session.flush()
                created += 1

            for city_name, fee in cities:
                if db.session.query(City).filter_by(county_id=county.id, name=city_name).first():
                    continue
                db.session.add(City(name=city_name, county_id=county.id, delivery_fee=fee, is_active=True))
                created += 1

    db.session.commit()
    click.echo(f"PASS Seeded locations ({created} new rows)")


@click.group('orders')
def orders_group():
    """Order inspection and status commands."""


@orders_group.command('create')
@click.option('--email', required=True, help='Customer email')
@click.option('--subtotal', type=int, required=True, help='Item subtotal in KES')
@click.option('--address-id', type=int, help="One of the customer's address IDs")
@click.option('--shipping', type=int, help="Defaults to the address city's delivery fee")
@with_appcontext
def create_order_cli(email, subtotal, address_id, shipping):
    user = _find_user(email)
    try:
        order = order_service.create_order(user.id, subtotal=subtotal, address_id=address_id, shipping=shipping)
    except StorefrontError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created order {order.order_number} (total {order.total})")


@orders_group.command('set-status')
@click.argument('order_number')
@click.argument('status')
@click.option('--note', help='Optional note stored with the status change')
@with_appcontext
def set_order_status_cli(order_number, status, note):
    try:
        order = order_service.update_status(order_number, status, note=note)
    except StorefrontError as e:
        raise click.ClickException(e.message)

    timeline = order_service.timeline_for(order)
    click.echo(f"PASS {order.order_number} is now '{order.status}'")
    if timeline.is_progressing:
        click.echo(f"     Current stage: {timeline.current_key}")
    else:
        click.echo("     Order is no longer progressing")


@click.group('push')
def push_group():
    """Push subscription registry commands."""


@push_group.command('list')
@click.option('--email', help='Only this user (default: all admin subscriptions)')
@with_appcontext
def list_push_cli(email):
    if email:
        subscriptions = push_subscription_service.list_for_user(_find_user(email).id)
    else:
        subscriptions = push_subscription_service.list_for_admins()

    if not subscriptions:
        click.echo("No subscriptions found")
        return
    for sub in subscriptions:
        click.echo(f"{sub.id:<6} user={sub.user_id:<6} {json.dumps(sub.to_webpush_info())}")


@push_group.command('prune')
@click.argument('endpoint')
@with_appcontext
def prune_push_cli(endpoint):
    if push_subscription_service.prune_endpoint(endpoint):
        click.echo("PASS Subscription removed")
    else:
        click.echo("No subscription for that endpoint")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(geo_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(push_group)

# Overview: Flask CLI command groups for bootstrap, catalog seeding and inspection.

# backend/quickpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Stores:
# - python -m flask stores create --name "Loja Centro"
# - python -m flask stores list
#
# Users:
# - python -m flask users create --email caixa@loja.com --store-id <uuid>
#   Create an account plus its store membership (prompts for the password).
#
# Catalog:
# - python -m flask catalog seed --store-id <uuid>
#   Insert the demo products into a store.
# - python -m flask catalog export --store-id <uuid> --dir ./instance/catalog
#   Write the store's catalog snapshot (page-load fallback file).
# - python -m flask catalog show --dir ./instance/catalog [--search caf] [--available]
#   Print a stored snapshot.

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .backend import BackendError, get_auth_backend, get_query_backend
from .extensions import db
from .formatting import format_currency
from .services import catalog_service
from .services.registration_service import RegistrationError, register_user
from .state import JsonFileStorage, Product, ProductCatalog

DEMO_PRODUCTS = [
    {"name": "Café Expresso", "price": Decimal("4.50"), "stock": 50},
    {"name": "Café com Leite", "price": Decimal("6.00"), "stock": 40},
    {"name": "Pão de Queijo", "price": Decimal("3.50"), "stock": 80},
    {"name": "Suco de Laranja", "price": Decimal("8.00"), "stock": 25},
    {"name": "Bolo de Cenoura", "price": Decimal("7.50"), "stock": 12},
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.confirm("This deletes ALL data. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("Database reset.")


@click.group('stores')
def stores_group():
    """Store (tenant) management."""


@stores_group.command('create')
@click.option('--name', required=True, help='Store name')
@with_appcontext
def create_store_cli(name):
    try:
        store = get_query_backend().insert("stores", [{"name": name}])[0]
    except BackendError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created store {store['name']!r} id={store['id']}")


@stores_group.command('list')
@with_appcontext
def list_stores_cli():
    stores = get_query_backend().select("stores", order_by="created_at")
    if not stores:
        click.echo("No stores.")
        return
    for store in stores:
        click.echo(f"{store['id']}  {store['name']}")


@click.group('users')
def users_group():
    """Account management."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--store-id', required=True, help='Store ID the user belongs to')
@with_appcontext
def create_user_cli(email, password, store_id):
    """Create an account and its store membership."""
    try:
        user = register_user(
            get_query_backend(),
            get_auth_backend(),
            {"email": email, "password": password, "storeId": store_id},
        )
    except RegistrationError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created user {user['email']} id={user['id']} in store {user['storeId']}")


@click.group('catalog')
def catalog_group():
    """Catalog seeding and snapshot commands."""


@catalog_group.command('seed')
@click.option('--store-id', required=True, help='Store ID')
@with_appcontext
def seed_catalog_cli(store_id):
    """Insert the demo products into a store."""
    backend = get_query_backend()
    for item in DEMO_PRODUCTS:
        try:
            product = catalog_service.create_product(backend, store_id, dict(item))
        except BackendError as e:
            raise click.ClickException(f"Failed to seed {item['name']!r}: {e}")
        click.echo(f"  + {product['name']} ({format_currency(product['price'])}, stock {product['stock']})")
    click.echo(f"Seeded {len(DEMO_PRODUCTS)} products.")


@catalog_group.command('export')
@click.option('--store-id', required=True, help='Store ID')
@click.option('--dir', 'directory', required=True, type=click.Path(file_okay=False), help='Snapshot directory')
@with_appcontext
def export_catalog_cli(store_id, directory):
    """Write the store's current catalog into the snapshot directory."""
    try:
        rows = catalog_service.list_products(get_query_backend(), store_id)
    except BackendError as e:
        raise click.ClickException(str(e))
    JsonFileStorage(directory).save(Product.from_dict(r) for r in rows)
    click.echo(f"Exported {len(rows)} products to {directory}")


@catalog_group.command('show')
@click.option('--dir', 'directory', required=True, type=click.Path(file_okay=False), help='Snapshot directory')
@click.option('--search', default='', help='Case-insensitive name filter')
@click.option('--available', 'only_available', is_flag=True, help='Only products in stock')
def show_catalog_cli(directory, search, only_available):
    """Print a stored catalog snapshot."""
    catalog = ProductCatalog(JsonFileStorage(directory).load())
    catalog.set_search(search)
    products = catalog.available() if only_available else catalog.list()
    if not products:
        click.echo("No products.")
        return
    for p in products:
        click.echo(f"{p.name:<30} {format_currency(p.price):>14}  stock {p.stock}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)

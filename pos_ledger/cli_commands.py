"""
Flask CLI commands for ledger maintenance.

Commands:
- flask init-db: Create the ledger tables
- flask seed-demo: Load a demo seller and catalog
- flask low-stock: List variants at or below their minimum stock
"""
from decimal import Decimal

import click
from flask import current_app

from pos_ledger.database import get_database
from pos_ledger.models import AppUser, Product, ProductVariant
from pos_ledger.repositories import StockStore


DEMO_CATALOG = [
    # (code, name, brand, [(sku, variant, cost, price, stock)])
    ('HAM-01', 'Claw Hammer', 'Stanley', [
        ('HAM-01-500', '500g', '4200.00', '6500.00', 12),
        ('HAM-01-750', '750g', '5100.00', '7900.00', 4),
    ]),
    ('SCR-02', 'Screwdriver Set', 'Bahco', [
        ('SCR-02-6', '6 pieces', '3800.00', '5600.00', 20),
    ]),
    ('TAP-03', 'Measuring Tape', 'Truper', [
        ('TAP-03-5M', '5 m', '1900.00', '2900.00', 3),
        ('TAP-03-8M', '8 m', '2600.00', '3900.00', 0),
    ]),
]


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables first')
    def init_db_command(drop):
        """Create all ledger tables."""
        database = get_database()
        if drop:
            click.confirm('This deletes every sale and product. Continue?', abort=True)
            database.drop_all()
            click.echo(click.style('Tables dropped', fg='yellow'))

        database.create_all()
        click.echo(click.style('✅ Database initialized', fg='green', bold=True))

    @app.cli.command('seed-demo')
    @click.option('--username', default='seller', show_default=True, help='Demo seller username')
    def seed_demo(username):
        """Load a demo seller and a small catalog (idempotent)."""
        database = get_database()
        database.create_all()
        min_stock = current_app.config.get('LOW_STOCK_THRESHOLD', 5)

        created_variants = 0
        with database.unit_of_work() as session:
            seller = session.query(AppUser).filter_by(username=username).first()
            if seller is None:
                seller = AppUser(username=username, full_name='Demo Seller', role='seller')
                session.add(seller)
                session.flush()
                click.echo(f'   Seller created: {seller.username} (ID: {seller.id})')
            else:
                click.echo(f'   Seller exists: {seller.username} (ID: {seller.id})')

            for code, name, brand, variants in DEMO_CATALOG:
                product = session.query(Product).filter_by(code=code).first()
                if product is None:
                    product = Product(code=code, name=name, brand=brand)
                    session.add(product)
                    session.flush()

                for sku, variant_name, cost, price, stock in variants:
                    if session.query(ProductVariant).filter_by(sku=sku).first() is not None:
                        continue
                    session.add(ProductVariant(
                        product_id=product.id,
                        sku=sku,
                        variant_name=variant_name,
                        cost_price=Decimal(cost),
                        sale_price=Decimal(price),
                        stock=stock,
                        min_stock=min_stock,
                    ))
                    created_variants += 1
            session.flush()

        click.echo(click.style(f'\n✅ Demo data loaded ({created_variants} new variant(s))',
                               fg='green', bold=True))

    @app.cli.command('low-stock')
    def low_stock():
        """List active variants at or below their minimum stock."""
        variants = StockStore(get_database()).list_low_stock()
        if not variants:
            click.echo(click.style('No variants below minimum stock', fg='green'))
            return

        click.echo(click.style(f'⚠️  {len(variants)} variant(s) low on stock:', fg='yellow', bold=True))
        for variant in variants:
            color = 'red' if variant.stock <= 0 else 'yellow'
            click.echo(
                f'   #{variant.id:<5} {variant.display_name:<40} '
                + click.style(f'stock {variant.stock}', fg=color)
                + f' (min {variant.min_stock})'
            )

# storefront/cli.py
import click
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash
from .extensions import db
from .model import User, Product, Promotion, StoreCredit
from .utils.catalog import slugify, normalize_category

DEMO_PRODUCTS = [
    ("Anker PowerCore 20000", "Power Bank", "Anker", 12500, 10990, 15, "18 Months", True),
    ("Baseus 65W GaN Charger", "Wall Charger", "Baseus", 8900, None, 20, "12 Months", True),
    ("UGREEN USB-C to USB-C Cable 1m", "Cables", "UGREEN", 1850, 1490, 60, "6 Months", False),
    ("Xiaomi Redmi Buds 4", "Earbuds", "Xiaomi", 9800, None, 8, "12 Months", True),
    ("Laptop Backpack 15.6\"", "Bags", "Arctic Hunter", 6500, 5900, 12, None, False),
]

DEMO_PROMOS = [
    ("SAVE10", "percent", 10),
    ("LESS500", "fixed", 500),
    ("FREESHIP", "freeShipping", None),
]


@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
@with_appcontext
def create_admin(email, password, name):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise click.ClickException("Email already exists")
    u = User(email=email, name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u)
    db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")


@click.command("seed-demo")
@with_appcontext
def seed_demo():
    """Load a handful of demo products, promo codes and one store credit."""
    added = 0
    for name, category, brand, price, sale, stock, warranty, featured in DEMO_PRODUCTS:
        slug = slugify(name)
        if Product.query.filter_by(slug=slug).first():
            continue
        p = Product(
            name=name, slug=slug, brand=brand, price=price, sale_price=sale, stock=stock,
            category=normalize_category(category), warranty=warranty, featured=featured,
        )
        p.set_images([f"/images/products/{slug}.jpg"])
        db.session.add(p)
        added += 1

    for code, ptype, value in DEMO_PROMOS:
        if not Promotion.query.filter_by(code=code).first():
            db.session.add(Promotion(code=code, type=ptype, value=value, enabled=True))
    if not StoreCredit.query.filter_by(code="CREDIT1000").first():
        db.session.add(StoreCredit(code="CREDIT1000", amount=1000, min_order_total=2000))

    db.session.commit()
    click.echo(f"Seeded {added} products")


def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(seed_demo)

"""Pytest fixtures for storefront tests."""
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from storefront import create_app
from storefront.config import TestingConfig
from storefront.extensions import db, mailer
from storefront.model import User, Product, Promotion, StoreCredit


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    mailer.outbox.clear()
    return mailer.outbox


def _user(email, role):
    u = User(email=email, name=role.title(), password_hash=generate_password_hash("secret123"), role=role)
    db.session.add(u)
    db.session.commit()
    return u


def _headers(user):
    return {"Authorization": f"Bearer {create_access_token(identity=str(user.id))}"}


@pytest.fixture
def admin(app):
    return _user("admin@test.local", "admin")


@pytest.fixture
def manager(app):
    return _user("manager@test.local", "manager")


@pytest.fixture
def customer_user(app):
    return _user("user@test.local", "user")


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def staff_headers(manager):
    return _headers(manager)


@pytest.fixture
def user_headers(customer_user):
    return _headers(customer_user)


@pytest.fixture
def products(app):
    """p1: scarce power bank, p2: plentiful cable, p3: charger on sale."""
    p1 = Product(name="Power Bank 10000", slug="power-bank-10000", price=Decimal("2500"), stock=2,
                 category="power-banks", brand="Anker", warranty="12 Months", featured=True)
    p2 = Product(name="USB-C Cable", slug="usb-c-cable", price=Decimal("1000"), stock=10,
                 category="cables", brand="UGREEN", featured=False)
    p3 = Product(name="GaN Charger 65W", slug="gan-charger-65w", price=Decimal("5000"),
                 sale_price=Decimal("4500"), stock=5, category="chargers", brand="Baseus", featured=True)
    for p in (p1, p2, p3):
        p.set_images([f"images/{p.slug}.jpg"])
        db.session.add(p)
    db.session.commit()
    return {"p1": p1, "p2": p2, "p3": p3}


@pytest.fixture
def promos(app):
    rows = [
        Promotion(code="SAVE10", type="percent", value=Decimal("10"), enabled=True),
        Promotion(code="LESS500", type="fixed", value=Decimal("500"), enabled=True),
        Promotion(code="FREESHIP", type="freeShipping", value=None, enabled=True),
        Promotion(code="OFF", type="percent", value=Decimal("20"), enabled=False),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return {p.code: p for p in rows}


@pytest.fixture
def credit(app):
    sc = StoreCredit(code="CREDIT1000", amount=Decimal("1000"), enabled=True, min_order_total=Decimal("2000"))
    db.session.add(sc)
    db.session.commit()
    return sc


@pytest.fixture
def customer_payload():
    return {
        "first_name": "Nimal",
        "last_name": "Perera",
        "email": "nimal@example.com",
        "address": "12 Galle Road",
        "city": "Colombo",
        "phone": "0771234567",
    }


@pytest.fixture
def order_payload(products, customer_payload):
    def build(lines=None, **extra):
        lines = lines if lines is not None else [("p2", 2)]
        items = []
        for key, qty in lines:
            p = products[key]
            items.append({"id": p.id, "name": p.name, "slug": p.slug, "price": float(p.price), "quantity": qty})
        payload = {"items": items, "customer": dict(customer_payload), "payment_method": "COD"}
        payload.update(extra)
        return payload
    return build

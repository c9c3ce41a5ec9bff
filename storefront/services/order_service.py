# storefront/services/order_service.py
from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..errors import StockConflict, ValidationError, ConflictError
from ..model import Order, Product, Customer, DifferentAddress, LineItem, ORDER_STATUSES, PAYMENT_METHODS
from ..utils.dates import utcnow
from ..utils.money import D, Money, round_money, parse_money, to_number
from . import discount_service


# ---- value types -----------------------------------------------------------

@dataclass(frozen=True)
class Shortage:
    id: object
    name: str
    requested: int
    available: int

    def as_api(self):
        return {"id": self.id, "name": self.name, "requested": self.requested, "available": self.available}


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Money
    shipping: Money
    total: Money


@dataclass(frozen=True)
class Quote:
    """Everything needed to persist an order, computed before the commit."""
    items: list
    promo_code: str | None
    promo_kind: str | None
    discount: Money
    free_shipping: bool
    totals: OrderTotals


# ---- calculator ------------------------------------------------------------

def required_quantity(qty) -> int:
    # zero/negative quantities count as one
    try:
        q = int(qty)
    except (TypeError, ValueError):
        q = 1
    return max(1, q)


def check_availability(items, stock_by_product_id) -> list[Shortage]:
    """Return one Shortage per product whose summed quantity exceeds the known stock.

    Lines repeating a product id are added up, so splitting a quantity across
    lines cannot get past the check.
    """
    requested, names = {}, {}
    for it in items:
        requested[it.id] = requested.get(it.id, 0) + required_quantity(it.quantity)
        names.setdefault(it.id, it.name)

    shortages = []
    for pid, qty in requested.items():
        available = int(stock_by_product_id.get(pid, 0) or 0)
        if qty > available:
            shortages.append(Shortage(id=pid, name=names[pid], requested=qty, available=available))
    return shortages


def compute_subtotal(items) -> Money:
    return sum((D(it.price) * required_quantity(it.quantity) for it in items), Decimal("0"))


def compute_totals(items, discount, free_shipping: bool, shipping_base_fee) -> OrderTotals:
    subtotal = compute_subtotal(items)
    shipping = Decimal("0") if free_shipping else D(shipping_base_fee)
    total = max(Decimal("0"), subtotal - D(discount)) + shipping
    return OrderTotals(subtotal=subtotal, shipping=shipping, total=total)


# ---- payload parsing -------------------------------------------------------

def _product_id(v):
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid product id: {v!r}")


def parse_line_items(raw) -> list[LineItem]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Empty cart.")
    items = []
    for r in raw:
        if not isinstance(r, dict):
            raise ValidationError("Each item must be an object.")
        try:
            price = parse_money(r.get("price", 0), "price")
        except ValueError as e:
            raise ValidationError(str(e))
        items.append(LineItem(
            id=_product_id(r.get("id")),
            name=str(r.get("name") or "").strip(),
            slug=str(r.get("slug") or "").strip(),
            price=price,
            quantity=required_quantity(r.get("quantity", 1)),
        ))
    return items


def parse_customer(payload: dict) -> Customer:
    raw = payload.get("customer")
    if not isinstance(raw, dict):
        raise ValidationError("customer is required")
    ship_to = None
    if payload.get("ship_different"):
        ship_to = DifferentAddress.from_payload(payload.get("shipping_address") or {})
    customer = Customer.from_payload(raw, ship_to)
    missing = [f for f in ("first_name", "last_name", "email", "address", "city") if not getattr(customer, f)]
    if missing:
        raise ValidationError(f"Missing customer fields: {', '.join(missing)}")
    return customer


def parse_promo_kind(v, promo_code) -> str | None:
    """Kind the storefront got back from validation; looked up only when the client omits it."""
    if not promo_code:
        return None
    kind = str(v or "").strip().lower()
    if not kind:
        return discount_service.code_kind(promo_code)
    if kind not in discount_service.CODE_KINDS:
        raise ValidationError(f"promo_kind must be one of: {', '.join(discount_service.CODE_KINDS)}")
    return kind


def parse_payment_method(v) -> str:
    pm = str(v or "COD").strip().upper()
    return pm if pm in PAYMENT_METHODS else "COD"


# ---- quoting ---------------------------------------------------------------

def quote_from_payload(items, payload: dict) -> Quote:
    """Use the figures the checkout client sent (storefront already validated the code)."""
    promo_code = discount_service.normalize_code(payload.get("promo_code")) or None
    try:
        discount = parse_money(payload.get("promo_discount") or 0, "promo_discount")
        fee = payload.get("shipping")
        fee = parse_money(current_app.config["SHIPPING_BASE_FEE"] if fee is None else fee, "shipping")
    except ValueError as e:
        raise ValidationError(str(e))
    free_shipping = bool(payload.get("free_shipping", False))
    promo_kind = parse_promo_kind(payload.get("promo_kind"), promo_code)
    totals = compute_totals(items, discount, free_shipping, fee)
    return Quote(items, promo_code, promo_kind, discount, free_shipping, totals)


def quote_from_catalog(items, payload: dict) -> Quote:
    """Re-price lines from the catalog and re-validate the code server-side."""
    ids = [it.id for it in items]
    products = {p.id: p for p in db.session.query(Product).filter(Product.id.in_(ids)).all()}
    priced = []
    for it in items:
        p = products.get(it.id)
        if p is None:
            priced.append(it)  # unknown product; the stock check rejects it
            continue
        unit = p.sale_price if p.on_sale else p.price
        priced.append(LineItem(id=p.id, name=p.name, slug=p.slug, price=D(unit), quantity=it.quantity))

    subtotal = compute_subtotal(priced)
    promo_code = discount_service.normalize_code(payload.get("promo_code")) or None
    kind = parse_promo_kind(payload.get("promo_kind"), promo_code)
    applied = discount_service.resolve_code(promo_code, subtotal, kind=kind) if promo_code else None
    if promo_code and applied is None:
        raise ValidationError(f"Code {promo_code} is not valid for this order")

    discount = applied.discount if applied else Decimal("0")
    free_shipping = applied.free_shipping if applied else False
    totals = compute_totals(priced, discount, free_shipping, current_app.config["SHIPPING_BASE_FEE"])
    return Quote(priced, promo_code, applied.kind if applied else None, discount, free_shipping, totals)


# ---- persistence gateway ---------------------------------------------------

def _gen_order_id():
    return f"ord_{int(time.time() * 1000)}{secrets.token_hex(2)}"


def _locked_products(ids):
    # Lock product rows to avoid oversell
    rows = (
        db.session.query(Product)
        .filter(Product.id.in_(ids))
        .with_for_update()
        .all()
    )
    return {p.id: p for p in rows}


def commit_order(order: Order, items) -> Order:
    """Decrement stock and insert ``order`` as one unit.

    Raises StockConflict (nothing written) when any line exceeds the locked stock.
    A store-credit code on the order is consumed in the same transaction.
    """
    try:
        pmap = _locked_products({it.id for it in items})
        shortages = check_availability(items, {pid: p.stock for pid, p in pmap.items()})
        if shortages:
            raise StockConflict(shortages)

        for it in items:
            p = pmap[it.id]
            p.stock = max(0, int(p.stock or 0) - required_quantity(it.quantity))

        if order.promo_kind == "store_credit":
            credit = discount_service.find_store_credit(order.promo_code, for_update=True)
            if credit is None or credit.used_at is not None:
                raise ConflictError(f"Store credit {order.promo_code} has already been used")
            credit.used_at = utcnow()
            credit.used_order_id = order.id

        db.session.add(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return order


def place_order(payload: dict, notifier=None) -> Order:
    """Validate the checkout payload, quote it, commit it, then notify (best effort)."""
    items = parse_line_items(payload.get("items"))
    customer = parse_customer(payload)

    if current_app.config.get("ORDER_REPRICE_ON_COMMIT"):
        quote = quote_from_catalog(items, payload)
    else:
        quote = quote_from_payload(items, payload)

    order = Order(
        id=_gen_order_id(),
        status="pending",
        customer=customer,
        items=quote.items,
        subtotal=round_money(quote.totals.subtotal),
        shipping=round_money(quote.totals.shipping),
        promo_code=quote.promo_code,
        promo_kind=quote.promo_kind,
        promo_discount=round_money(quote.discount) if quote.discount else None,
        free_shipping=quote.free_shipping,
        total=round_money(quote.totals.total),
        payment_method=parse_payment_method(payload.get("payment_method")),
        bank_slip_name=payload.get("bank_slip_name") or None,
        bank_slip_url=payload.get("bank_slip_url") or None,
    )

    try:
        commit_order(order, quote.items)
    except StockConflict as e:
        current_app.logger.info("order rejected, shortages=%s", [s.as_api() for s in e.shortages])
        raise

    current_app.logger.info(
        "order %s placed: total=%s items=%d code=%s",
        order.id, to_number(order.total), len(quote.items), order.promo_code,
    )
    if notifier is not None:
        notifier.notify_order_placed(order)
    return order


# ---- back office -----------------------------------------------------------

def set_status(order: Order, status) -> Order:
    """Any status may follow any other; only the value itself is checked."""
    status = str(status or "").strip().lower()
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid status.")
    order.status = status
    db.session.commit()
    return order

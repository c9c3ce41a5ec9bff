# storefront/store_credit/routes.py
from flask import request

from ..model import StoreCredit
from ..services import promo_service
from ..services.discount_service import validate_store_credit, CREDIT_REASON_MESSAGES
from ..utils.api import ok, err
from ..utils.decorators import staff_required, admin_required
from ..utils.money import parse_money
from . import bp


@bp.post("/validate")
def validate():
    data = request.get_json(silent=True) or {}
    code = (data.get("code") or "").strip()
    raw_total = data.get("order_total", data.get("subtotal"))
    if not code or raw_total is None:
        return err("code and order_total are required")
    try:
        order_total = parse_money(raw_total, "order_total", allow_negative=True)
    except ValueError as e:
        return err(str(e))

    verdict = validate_store_credit(code, order_total)
    if not verdict.valid:
        return err(CREDIT_REASON_MESSAGES.get(verdict.reason, "Invalid store credit"), 400, verdict.as_api())
    return ok("Store credit applied", verdict.as_api())


@bp.get("")
@staff_required
def list_credits():
    q = StoreCredit.query
    used = request.args.get("used")
    if used == "1":
        q = q.filter(StoreCredit.used_at.isnot(None))
    elif used == "0":
        q = q.filter(StoreCredit.used_at.is_(None))
    rows = q.order_by(StoreCredit.created_at.desc()).all()
    return ok("store credits", {"items": [sc.as_api() for sc in rows]})


@bp.post("")
@staff_required
def create_credit():
    data = request.get_json(silent=True) or {}
    sc = promo_service.create_store_credit(data)
    return ok("Store credit created", sc.as_api(), 201)


@bp.get("/<code>")
@staff_required
def get_credit(code):
    sc = promo_service.find_store_credit(code)
    if not sc:
        return err("Not found", 404)
    return ok("store credit", sc.as_api())


@bp.put("/<code>")
@staff_required
def update_credit(code):
    data = request.get_json(silent=True) or {}
    sc = promo_service.update_store_credit(code, data)
    return ok("Store credit updated", sc.as_api())


@bp.delete("/<code>")
@admin_required
def delete_credit(code):
    promo_service.delete_store_credit(code)
    return ok("Store credit deleted", {"code": code.strip().upper()})

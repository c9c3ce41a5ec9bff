# storefront/promo/routes.py
from flask import request

from ..model import Promotion
from ..services import promo_service
from ..services.discount_service import validate_promotion
from ..utils.api import ok, err
from ..utils.decorators import staff_required, admin_required
from ..utils.money import parse_money
from . import bp


@bp.post("/validate")
def validate():
    """Storefront check of a promo code against the current cart subtotal."""
    data = request.get_json(silent=True) or {}
    code = (data.get("code") or "").strip()
    if not code:
        return err("code is required")
    try:
        subtotal = parse_money(data.get("subtotal", 0), "subtotal")
    except ValueError as e:
        return err(str(e))

    result = validate_promotion(code, subtotal)
    if not result.valid:
        return err("Invalid or inactive code", 404, result.as_api())
    return ok("Promo code applied", result.as_api())


@bp.get("")
@staff_required
def list_promos():
    rows = Promotion.query.order_by(Promotion.code.asc()).all()
    return ok("promotions", {"items": [p.as_api() for p in rows]})


@bp.post("")
@staff_required
def save_promo():
    data = request.get_json(silent=True) or {}
    p, created = promo_service.save_promotion(data)
    if created:
        return ok("Promotion created", p.as_api(), 201)
    return ok("Promotion updated", p.as_api())


@bp.get("/<code>")
@staff_required
def get_promo(code):
    p = promo_service.find_promotion(code)
    if not p:
        return err("Not found", 404)
    return ok("promotion", p.as_api())


@bp.put("/<code>")
@staff_required
def update_promo(code):
    data = request.get_json(silent=True) or {}
    p = promo_service.update_promotion(code, data)
    return ok("Promotion updated", p.as_api())


@bp.delete("/<code>")
@admin_required
def delete_promo(code):
    promo_service.delete_promotion(code)
    return ok("Promotion deleted", {"code": code.strip().upper()})

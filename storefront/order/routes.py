# storefront/order/routes.py
from flask import request

from ..extensions import db, mailer
from ..model import Order
from ..services.mail_service import OrderNotifier
from ..services.order_service import place_order, set_status
from ..utils.api import ok, err
from ..utils.dates import parse_iso8601
from ..utils.decorators import staff_required, admin_required
from . import bp


@bp.post("")
def create_order():
    """Checkout. 201 on success, 409 with shortages when stock ran out, 400 on bad input."""
    payload = request.get_json(silent=True) or {}
    order = place_order(payload, notifier=OrderNotifier(mailer))
    return ok("Order placed", {"ok": True, "order_id": order.id, "order": order.as_api()}, 201)


@bp.get("/<order_id>")
def get_order(order_id):
    o = db.session.get(Order, order_id)
    if not o:
        return err("Order not found", 404)
    return ok("order", o.as_api())


@bp.get("")
@staff_required
def list_orders():
    """
    Query params:
      - page, per_page
      - status=pending|paid|shipped|completed|cancelled
      - start, end (ISO dates, end inclusive by timestamp)
    """
    q = Order.query

    status = request.args.get("status")
    if status:
        q = q.filter(Order.status == status.strip().lower())

    start = parse_iso8601(request.args.get("start"))
    end = parse_iso8601(request.args.get("end"))
    if start:
        q = q.filter(Order.created_at >= start)
    if end:
        q = q.filter(Order.created_at <= end)

    try:
        page = max(int(request.args.get("page", 1)), 1)
        per = min(max(int(request.args.get("per_page", 20)), 1), 100)
    except ValueError:
        return err("page and per_page must be integers")

    paged = q.order_by(Order.created_at.desc()).paginate(page=page, per_page=per, error_out=False)
    return ok("orders", {
        "page": page,
        "per_page": per,
        "total": paged.total,
        "items": [o.as_api() for o in paged.items],
    })


@bp.put("/<order_id>")
@staff_required
def update_order_status(order_id):
    o = db.session.get(Order, order_id)
    if not o:
        return err("Order not found", 404)
    data = request.get_json(silent=True) or {}
    set_status(o, data.get("status"))
    return ok("Order updated", o.as_api())


@bp.delete("/<order_id>")
@admin_required
def delete_order(order_id):
    o = db.session.get(Order, order_id)
    if not o:
        return err("Order not found", 404)
    db.session.delete(o)
    db.session.commit()
    return ok("Order deleted", {"id": order_id})

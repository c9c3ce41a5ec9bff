# storefront/model/order.py
from ..extensions import db
from ..utils.dates import iso, utcnow
from ..utils.money import to_number
from .types import CustomerType, LineItemList

ORDER_STATUSES = ("pending", "paid", "shipped", "completed", "cancelled")
PAYMENT_METHODS = ("COD", "BANK")


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(40), primary_key=True)            # e.g. "ord_1730000000000a1b2"
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    customer = db.Column(CustomerType, nullable=False)
    items = db.Column(LineItemList, nullable=False)

    # Money snapshot (computed once at creation)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    shipping = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    promo_code = db.Column(db.String(64), nullable=True, index=True)
    promo_kind = db.Column(db.String(16), nullable=True)         # "promo" | "store_credit" | None
    promo_discount = db.Column(db.Numeric(12, 2), nullable=True)
    free_shipping = db.Column(db.Boolean, nullable=False, default=False)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(8), nullable=False, default="COD")
    bank_slip_name = db.Column(db.String(255), nullable=True)
    bank_slip_url = db.Column(db.String(1024), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def as_api(self):
        return {
            "id": self.id,
            "created_at": iso(self.created_at),
            "status": self.status,
            "customer": self.customer.as_dict() if self.customer else None,
            "items": [i.as_dict() for i in (self.items or [])],
            "subtotal": to_number(self.subtotal or 0),
            "shipping": to_number(self.shipping or 0),
            "promo_code": self.promo_code,
            "promo_kind": self.promo_kind,
            "promo_discount": to_number(self.promo_discount) if self.promo_discount is not None else None,
            "free_shipping": bool(self.free_shipping),
            "total": to_number(self.total or 0),
            "payment_method": self.payment_method,
            "bank_slip_name": self.bank_slip_name,
            "bank_slip_url": self.bank_slip_url,
        }

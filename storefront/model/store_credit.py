# --- storefront/model/store_credit.py ---
from sqlalchemy.sql import func
from ..extensions import db
from ..utils.dates import iso
from ..utils.money import to_number


class StoreCredit(db.Model):
    __tablename__ = "store_credits"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)  # always UPPERCASE
    amount = db.Column(db.Numeric(12, 2), nullable=False)                     # LKR

    enabled = db.Column(db.Boolean, nullable=False, default=True)
    min_order_total = db.Column(db.Numeric(12, 2), nullable=True)
    starts_at = db.Column(db.DateTime, nullable=True)
    ends_at = db.Column(db.DateTime, nullable=True)

    # single use: once set, the credit is consumed for good
    used_at = db.Column(db.DateTime, nullable=True)
    used_order_id = db.Column(db.String(40), nullable=True, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now())

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def as_api(self):
        return {
            "code": self.code,
            "amount": to_number(self.amount or 0),
            "enabled": bool(self.enabled),
            "min_order_total": to_number(self.min_order_total) if self.min_order_total is not None else None,
            "starts_at": iso(self.starts_at),
            "ends_at": iso(self.ends_at),
            "used_at": iso(self.used_at),
            "used_order_id": self.used_order_id,
            "created_at": iso(self.created_at),
        }

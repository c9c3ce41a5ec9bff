# --- storefront/model/promotion.py ---

from ..extensions import db
from ..utils.dates import iso
from ..utils.money import to_number

PROMO_TYPES = ("percent", "fixed", "freeShipping")


class Promotion(db.Model):
    __tablename__ = "promotions"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)  # always UPPERCASE

    # "percent" | "fixed" | "freeShipping"
    type = db.Column(db.String(16), nullable=False, default="percent")
    value = db.Column(db.Numeric(12, 2), nullable=True)  # NULL for freeShipping

    enabled = db.Column(db.Boolean, nullable=False, default=True, index=True)
    starts_at = db.Column(db.DateTime, nullable=True)
    ends_at = db.Column(db.DateTime, nullable=True)

    def as_api(self):
        return {
            "code": self.code,
            "type": self.type,
            "value": to_number(self.value) if self.value is not None else None,
            "enabled": bool(self.enabled),
            "starts_at": iso(self.starts_at),
            "ends_at": iso(self.ends_at),
        }

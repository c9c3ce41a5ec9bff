# storefront/services/discount_service.py
"""Promotion and store-credit evaluation.

Everything here is read-only: validating a code never changes stored state, so the
checks can be repeated freely. Consuming a store credit is done by the order commit
(see ``order_service.commit_order``).
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..model import Promotion, StoreCredit
from ..utils.dates import utcnow
from ..utils.money import D, Money, floor_money, to_number

# store-credit rejection reasons
NOT_FOUND = "NOT_FOUND"
DISABLED = "DISABLED"
ALREADY_USED = "ALREADY_USED"
NOT_STARTED = "NOT_STARTED"
EXPIRED = "EXPIRED"
MIN_TOTAL = "MIN_TOTAL"

CODE_KINDS = ("promo", "store_credit")

CREDIT_REASON_MESSAGES = {
    NOT_FOUND: "Store credit not found",
    DISABLED: "Store credit is disabled",
    ALREADY_USED: "Store credit has already been used",
    NOT_STARTED: "Store credit is not active yet",
    EXPIRED: "Store credit has expired",
    MIN_TOTAL: "Order total is below the store credit minimum",
}


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


@dataclass(frozen=True)
class PromoResult:
    valid: bool
    discount: Money = Decimal("0")
    free_shipping: bool = False
    reason: str | None = None
    promotion: Promotion | None = None

    def as_api(self):
        d = {
            "valid": self.valid,
            "kind": "promo",
            "discount": to_number(self.discount),
            "free_shipping": self.free_shipping,
        }
        if self.reason:
            d["reason"] = self.reason
        if self.promotion is not None and self.valid:
            d["promo"] = {"code": self.promotion.code}
        return d


@dataclass(frozen=True)
class CreditVerdict:
    valid: bool
    reason: str | None = None
    max_usable: Money | None = None
    credit: StoreCredit | None = None

    def as_api(self):
        d = {"valid": self.valid, "kind": "store_credit"}
        if self.reason:
            d["reason"] = self.reason
        if self.max_usable is not None:
            d["max_usable"] = to_number(self.max_usable)
            d["discount"] = to_number(self.max_usable)
            d["free_shipping"] = False
        d["credit"] = {"code": self.credit.code} if self.credit is not None else None
        return d


# ---- lookups ---------------------------------------------------------------

def find_promotion(code) -> Promotion | None:
    c = normalize_code(code)
    if not c:
        return None
    return Promotion.query.filter(func.upper(Promotion.code) == c).first()


def find_store_credit(code, *, for_update=False) -> StoreCredit | None:
    c = normalize_code(code)
    if not c:
        return None
    q = db.session.query(StoreCredit).filter(func.upper(StoreCredit.code) == c)
    if for_update:
        q = q.with_for_update()
    return q.first()


# ---- promotions ------------------------------------------------------------

def is_promotion_active(p: Promotion | None, now: datetime | None = None) -> bool:
    if p is None or not p.enabled:
        return False
    now = now or utcnow()
    if p.starts_at and now < p.starts_at:
        return False
    if p.ends_at and now > p.ends_at:
        return False
    return True


def compute_promotion_discount(p: Promotion, subtotal) -> tuple[Money, bool]:
    """Return (discount, free_shipping) for an active promotion."""
    base = max(Decimal("0"), D(subtotal))
    if p.type == "freeShipping":
        return Decimal("0"), True
    value = D(p.value)
    if p.type == "percent":
        pct = min(Decimal("100"), max(Decimal("0"), value))
        return floor_money(base * pct / Decimal("100")), False
    if p.type == "fixed":
        return min(max(Decimal("0"), value), base), False
    return Decimal("0"), False


def evaluate_promotion(p: Promotion | None, subtotal, now: datetime | None = None) -> PromoResult:
    if p is None:
        return PromoResult(valid=False, reason="not found")
    if not is_promotion_active(p, now):
        return PromoResult(valid=False, reason="not active", promotion=p)
    discount, free_shipping = compute_promotion_discount(p, subtotal)
    return PromoResult(valid=True, discount=discount, free_shipping=free_shipping, promotion=p)


def validate_promotion(code, subtotal, now: datetime | None = None) -> PromoResult:
    return evaluate_promotion(find_promotion(code), subtotal, now)


# ---- store credits ---------------------------------------------------------

def evaluate_store_credit(credit: StoreCredit | None, order_total, now: datetime | None = None) -> CreditVerdict:
    if credit is None:
        return CreditVerdict(valid=False, reason=NOT_FOUND)
    if not credit.enabled:
        return CreditVerdict(valid=False, reason=DISABLED, credit=credit)
    if credit.used_at is not None:
        return CreditVerdict(valid=False, reason=ALREADY_USED, credit=credit)

    now = now or utcnow()
    if credit.starts_at and now < credit.starts_at:
        return CreditVerdict(valid=False, reason=NOT_STARTED, credit=credit)
    if credit.ends_at and now > credit.ends_at:
        return CreditVerdict(valid=False, reason=EXPIRED, credit=credit)

    total = max(Decimal("0"), D(order_total))
    if credit.min_order_total is not None and total < D(credit.min_order_total):
        return CreditVerdict(valid=False, reason=MIN_TOTAL, credit=credit)

    return CreditVerdict(valid=True, max_usable=min(total, D(credit.amount)), credit=credit)


def validate_store_credit(code, order_total, now: datetime | None = None) -> CreditVerdict:
    return evaluate_store_credit(find_store_credit(code), order_total, now)


# ---- either kind -----------------------------------------------------------

@dataclass(frozen=True)
class AppliedCode:
    """Resolved discount for the single code an order may carry."""
    code: str
    kind: str            # "promo" | "store_credit"
    discount: Money
    free_shipping: bool


def resolve_code(code, subtotal, now: datetime | None = None, kind: str | None = None) -> AppliedCode | None:
    """Validate ``code`` as a store credit first, then as a promotion.

    ``kind`` restricts the lookup to one table. Returns None when the code is
    unknown or not currently usable.
    """
    c = normalize_code(code)
    if not c:
        return None
    credit = find_store_credit(c) if kind != "promo" else None
    if kind == "store_credit" and credit is None:
        return None
    if credit is not None:
        verdict = evaluate_store_credit(credit, subtotal, now)
        if not verdict.valid:
            return None
        return AppliedCode(credit.code, "store_credit", verdict.max_usable, False)
    result = validate_promotion(c, subtotal, now)
    if not result.valid:
        return None
    return AppliedCode(result.promotion.code, "promo", result.discount, result.free_shipping)


def code_kind(code) -> str | None:
    if find_store_credit(code) is not None:
        return "store_credit"
    if find_promotion(code) is not None:
        return "promo"
    return None

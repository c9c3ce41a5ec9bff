# storefront/services/promo_service.py
"""Back-office create/update/delete for promotions and store credits."""
from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError
from ..model import Promotion, StoreCredit, PROMO_TYPES
from ..utils.catalog import parse_bool
from ..utils.dates import parse_iso8601
from ..utils.money import parse_money
from .discount_service import normalize_code, find_promotion, find_store_credit

_MISSING = object()


def _window(data: dict, base=None):
    """Parse starts_at/ends_at; absent keys keep the base values, explicit null clears."""
    out = []
    for key in ("starts_at", "ends_at"):
        raw = data.get(key, _MISSING)
        if raw is _MISSING:
            out.append(getattr(base, key) if base is not None else None)
            continue
        dt = parse_iso8601(raw)
        if raw and not dt:
            raise ValidationError(f"Invalid datetime format for {key}")
        out.append(dt)
    starts_at, ends_at = out
    if starts_at and ends_at and ends_at < starts_at:
        raise ValidationError("ends_at must not be before starts_at")
    return starts_at, ends_at


# ---- promotions ------------------------------------------------------------

def _promo_value(ptype, raw):
    if ptype == "freeShipping":
        return None
    try:
        value = parse_money(raw, "value")
    except ValueError as e:
        raise ValidationError(str(e))
    if ptype == "percent" and value > 100:
        raise ValidationError("percent value must be <= 100")
    return value


def save_promotion(data: dict) -> tuple[Promotion, bool]:
    """Create or overwrite a promotion by code. Returns (promotion, created)."""
    code = normalize_code(data.get("code"))
    ptype = str(data.get("type") or "").strip()
    if not code or not ptype:
        raise ValidationError("Missing required fields: code, type.")
    if ptype not in PROMO_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(PROMO_TYPES)}")

    value = _promo_value(ptype, data.get("value"))
    starts_at, ends_at = _window(data)
    if find_store_credit(code) is not None:
        raise ConflictError(f"Code {code} is already used by a store credit")

    p = find_promotion(code)
    created = p is None
    if created:
        p = Promotion(code=code)
        db.session.add(p)

    p.type = ptype
    p.value = value
    p.enabled = parse_bool(data.get("enabled"), True)
    p.starts_at, p.ends_at = starts_at, ends_at
    db.session.commit()
    return p, created


def update_promotion(code, data: dict) -> Promotion:
    """Partial update; absent fields keep their stored values."""
    p = find_promotion(code)
    if p is None:
        raise NotFoundError("Not found")

    ptype = str(data.get("type") or p.type).strip()
    if ptype not in PROMO_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(PROMO_TYPES)}")
    if ptype == "freeShipping":
        value = None
    elif data.get("value") is not None:
        value = _promo_value(ptype, data.get("value"))
    else:
        value = p.value if p.value is not None else _promo_value(ptype, 0)

    p.type = ptype
    p.value = value
    if "enabled" in data:
        p.enabled = parse_bool(data.get("enabled"), p.enabled)
    p.starts_at, p.ends_at = _window(data, base=p)
    db.session.commit()
    return p


def delete_promotion(code):
    p = find_promotion(code)
    if p is None:
        raise NotFoundError("Not found")
    db.session.delete(p)
    db.session.commit()


# ---- store credits ---------------------------------------------------------

def _credit_amount(raw):
    try:
        amount = parse_money(raw, "amount")
    except ValueError:
        raise ValidationError("Missing/invalid fields: code, amount.")
    if amount <= 0:
        raise ValidationError("Missing/invalid fields: code, amount.")
    return amount


def _min_total(raw):
    if raw is None or raw == "":
        return None
    try:
        return parse_money(raw, "min_order_total")
    except ValueError as e:
        raise ValidationError(str(e))


def create_store_credit(data: dict) -> StoreCredit:
    code = normalize_code(data.get("code"))
    if not code:
        raise ValidationError("Missing/invalid fields: code, amount.")
    amount = _credit_amount(data.get("amount"))
    if find_store_credit(code) is not None:
        raise ConflictError(f"Store credit {code} already exists")
    if find_promotion(code) is not None:
        raise ConflictError(f"Code {code} is already used by a promotion")

    starts_at, ends_at = _window(data)
    sc = StoreCredit(
        code=code,
        amount=amount,
        enabled=parse_bool(data.get("enabled"), True),
        min_order_total=_min_total(data.get("min_order_total")),
        starts_at=starts_at,
        ends_at=ends_at,
    )
    db.session.add(sc)
    db.session.commit()
    return sc


def _unused_credit(code) -> StoreCredit:
    sc = find_store_credit(code)
    if sc is None:
        raise NotFoundError("Not found")
    if sc.used_at is not None:
        raise ConflictError(f"Store credit {sc.code} was used by order {sc.used_order_id} and can no longer change")
    return sc


def update_store_credit(code, data: dict) -> StoreCredit:
    sc = _unused_credit(code)
    if data.get("amount") is not None:
        sc.amount = _credit_amount(data.get("amount"))
    if "enabled" in data:
        sc.enabled = parse_bool(data.get("enabled"), sc.enabled)
    if "min_order_total" in data:
        sc.min_order_total = _min_total(data.get("min_order_total"))
    sc.starts_at, sc.ends_at = _window(data, base=sc)
    db.session.commit()
    return sc


def delete_store_credit(code):
    sc = _unused_credit(code)
    db.session.delete(sc)
    db.session.commit()

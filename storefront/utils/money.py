# storefront/utils/money.py

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP

Money = Decimal

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x: Money) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def floor_money(x: Money) -> Money:
    # whole rupees, no fractional currency
    return D(x).to_integral_value(rounding=ROUND_FLOOR)

def to_number(x):
    """JSON-friendly number: ints stay ints, everything else becomes float."""
    x = D(x)
    if x == x.to_integral_value():
        return int(x)
    return float(x)

def parse_money(v, field: str, *, allow_negative=False) -> Money:
    """Parse a numeric payload value; raises ValueError with a field-specific message."""
    if v is None or isinstance(v, bool) or (isinstance(v, str) and not v.strip()):
        raise ValueError(f"{field} must be numeric")
    try:
        x = D(v)
    except Exception:
        raise ValueError(f"{field} must be numeric")
    if not x.is_finite():
        raise ValueError(f"{field} must be numeric")
    if x < 0 and not allow_negative:
        raise ValueError(f"{field} must be >= 0")
    return x

# storefront/utils/catalog.py
import re
import unicodedata

# free-text label -> stable category slug
CATEGORY_MAP = {
    "power bank": "power-banks",
    "powerbank": "power-banks",
    "power banks": "power-banks",
    "power-banks": "power-banks",

    "adapter": "chargers",
    "adaptor": "chargers",
    "adapters": "chargers",
    "charger": "chargers",
    "chargers": "chargers",

    "cable": "cables",
    "cables": "cables",
    "usb": "cables",
    "type c": "cables",
    "type-c": "cables",
    "lightning": "cables",
    "micro usb": "cables",

    "bag": "bags",
    "bags": "bags",
    "backpack": "bags",
    "sleeve": "bags",
    "case": "bags",

    "earbud": "audio",
    "earbuds": "audio",
    "headphone": "audio",
    "headphones": "audio",
    "headset": "audio",
    "speaker": "audio",
    "speakers": "audio",
    "audio": "audio",
}

_CATEGORY_PATTERNS = [
    (re.compile(r"power\s*-?\s*bank"), "power-banks"),
    (re.compile(r"(charger|adaptor|adapter|gan|wall\s*charger|car\s*charger)"), "chargers"),
    (re.compile(r"(cable|usb|type\s*-?\s*c|lightning|micro\s*-?\s*usb)"), "cables"),
    (re.compile(r"(backpack|bag|sleeve|pouch|case)"), "bags"),
    (re.compile(r"(earbud|headphone|headset|speaker|audio)"), "audio"),
]

CATEGORY_LABELS = {
    "power-banks": "Power Banks",
    "chargers": "Chargers & Adapters",
    "cables": "Cables",
    "bags": "Bags & Sleeves",
    "audio": "Audio",
    "others": "Tech Accessories",
}


def slugify(text):
    text = unicodedata.normalize("NFKD", str(text or "")).encode("ascii", "ignore").decode()
    text = text.strip().lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def normalize_category(raw):
    """Map any raw category label to a stable slug ("others" when nothing is left)."""
    key = str(raw or "").strip().lower()
    if not key:
        return None
    if key in CATEGORY_MAP:
        return CATEGORY_MAP[key]
    for pattern, slug in _CATEGORY_PATTERNS:
        if pattern.search(key):
            return slug
    return slugify(key) or "others"


def parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "t", "true", "yes", "y", "on"}

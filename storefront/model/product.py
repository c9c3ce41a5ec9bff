# storefront/model/product.py
from sqlalchemy.sql import func
from ..extensions import db
from ..utils.dates import iso
from ..utils.money import to_number
from .types import StringMap

PLACEHOLDER_IMAGE = "/placeholder.png"


def normalize_image_path(s) -> str | None:
    s = str(s or "").strip()
    if not s:
        return None
    if s.startswith("/") or s.lower().startswith(("http://", "https://")):
        return s
    return f"/{s}"


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)

    image = db.Column(db.String(1024))               # primary image, first of images
    images = db.Column(db.JSON, default=list)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sale_price = db.Column(db.Numeric(12, 2), nullable=True)

    short_desc = db.Column(db.Text)
    brand = db.Column(db.String(120), index=True)
    category = db.Column(db.String(64), index=True)  # normalized slug, e.g. "power-banks"
    specs = db.Column(StringMap)
    warranty = db.Column(db.String(120))

    stock = db.Column(db.Integer, nullable=False, default=0)
    featured = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now(), index=True)

    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    def set_images(self, images):
        imgs = [p for p in (normalize_image_path(i) for i in (images or [])) if p]
        self.images = imgs
        self.image = imgs[0] if imgs else (self.image or PLACEHOLDER_IMAGE)

    @property
    def on_sale(self) -> bool:
        return self.sale_price is not None and 0 < self.sale_price < self.price

    def as_api(self):
        imgs = list(self.images or [])
        primary = imgs[0] if imgs else (self.image or PLACEHOLDER_IMAGE)
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "image": primary,
            "images": imgs or [primary],
            "price": to_number(self.price or 0),
            "sale_price": to_number(self.sale_price) if self.sale_price is not None else None,
            "short_desc": self.short_desc,
            "brand": self.brand,
            "category": self.category,
            "specs": self.specs,
            "stock": int(self.stock or 0),
            "warranty": self.warranty,
            "featured": bool(self.featured),
            "created_at": iso(self.created_at),
        }

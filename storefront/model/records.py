# storefront/model/records.py
"""Structured value records embedded in orders (stored as typed JSON columns)."""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from decimal import Decimal

from ..utils.money import D, to_number


def _s(v) -> str:
    return str(v if v is not None else "").strip()


def _opt(v) -> str | None:
    s = _s(v)
    return s or None


@dataclass(frozen=True)
class DifferentAddress:
    """Ship-to address when it differs from the billing address."""
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    postal: str | None = None

    @classmethod
    def from_payload(cls, data: dict) -> DifferentAddress:
        data = data or {}
        name = _opt(data.get("name")) or _opt(f"{_s(data.get('first_name'))} {_s(data.get('last_name'))}")
        return cls(
            name=name,
            phone=_opt(data.get("phone")),
            address=_opt(data.get("address")),
            city=_opt(data.get("city")),
            postal=_opt(data.get("postal")),
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Customer:
    first_name: str
    last_name: str
    email: str
    address: str
    city: str
    phone: str | None = None
    postal: str | None = None
    notes: str | None = None
    ship_to_different: DifferentAddress | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_payload(cls, data: dict, ship_to: DifferentAddress | None = None) -> Customer:
        data = data or {}
        return cls(
            first_name=_s(data.get("first_name")),
            last_name=_s(data.get("last_name")),
            email=_s(data.get("email")),
            address=_s(data.get("address")),
            city=_s(data.get("city")),
            phone=_opt(data.get("phone")),
            postal=_opt(data.get("postal")),
            notes=_opt(data.get("notes")),
            ship_to_different=ship_to,
        )

    @classmethod
    def from_dict(cls, data: dict) -> Customer:
        data = dict(data or {})
        ship = data.pop("ship_to_different", None)
        return cls(
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            email=data.get("email") or "",
            address=data.get("address") or "",
            city=data.get("city") or "",
            phone=data.get("phone"),
            postal=data.get("postal"),
            notes=data.get("notes"),
            ship_to_different=DifferentAddress(**ship) if ship else None,
        )

    def as_dict(self) -> dict:
        d = asdict(self)
        d["ship_to_different"] = self.ship_to_different.as_dict() if self.ship_to_different else None
        return d


@dataclass
class LineItem:
    """One cart line, snapshotted at order time."""
    id: object
    name: str
    slug: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return D(self.price) * self.quantity

    @classmethod
    def from_dict(cls, data: dict) -> LineItem:
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            slug=data.get("slug") or "",
            price=D(data.get("price")),
            quantity=int(data.get("quantity") or 0),
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "price": to_number(self.price),
            "quantity": self.quantity,
        }

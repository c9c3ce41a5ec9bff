# ------ storefront/model/__init__.py ------

from .user import User, RefreshToken
from .product import Product
from .promotion import Promotion, PROMO_TYPES
from .store_credit import StoreCredit
from .order import Order, ORDER_STATUSES, PAYMENT_METHODS
from .records import Customer, DifferentAddress, LineItem

__all__ = [
    "User",
    "RefreshToken",
    "Product",
    "Promotion",
    "PROMO_TYPES",
    "StoreCredit",
    "Order",
    "ORDER_STATUSES",
    "PAYMENT_METHODS",
    "Customer",
    "DifferentAddress",
    "LineItem",
]

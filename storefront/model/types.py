# storefront/model/types.py
from sqlalchemy.types import TypeDecorator, JSON

from .records import Customer, LineItem


class StringMap(TypeDecorator):
    """JSON object column holding a flat str -> str map (product specs)."""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if not value:
            return None
        if not isinstance(value, dict):
            raise TypeError("StringMap expects a dict")
        return {str(k).strip(): str(v).strip() for k, v in value.items() if str(k).strip()}

    def process_result_value(self, value, dialect):
        return dict(value) if value else None


class CustomerType(TypeDecorator):
    """Stores a Customer record as JSON."""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, dict):
            value = Customer.from_dict(value)
        return value.as_dict()

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Customer.from_dict(value)


class LineItemList(TypeDecorator):
    """Stores an ordered list of LineItem snapshots as JSON."""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        return [(i if isinstance(i, dict) else i.as_dict()) for i in value]

    def process_result_value(self, value, dialect):
        return [LineItem.from_dict(i) for i in (value or [])]

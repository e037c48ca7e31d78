# stocky/database/types.py

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import NUMERIC
from sqlalchemy.types import TypeDecorator


class DecimalType(TypeDecorator):
    """
    Exact decimal column.

    NUMERIC on PostgreSQL, unconstrained unless precision and scale are
    given. Dialects without a native decimal (SQLite) store the canonical
    string so values never pass through a binary float.
    """
    impl = NUMERIC
    cache_ok = True

    def __init__(self, precision: Optional[int] = None, scale: Optional[int] = None):
        super().__init__()
        self.precision = precision
        self.scale = scale

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(NUMERIC(precision=self.precision, scale=self.scale, asdecimal=True))
        return dialect.type_descriptor(String(64))

    def process_bind_param(self, value: Optional[Decimal], dialect):
        if value is None:
            return None
        value = Decimal(value)
        if dialect.name == 'postgresql':
            return value
        return str(value)

    def process_result_value(self, value, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return value if isinstance(value, Decimal) else Decimal(str(value))


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every dialect"""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetimes are not accepted, attach a timezone")
        value = value.astimezone(timezone.utc)
        if dialect.name == 'postgresql':
            return value
        return value.replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

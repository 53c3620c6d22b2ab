"""Custom SQLAlchemy column types for portability."""

from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON, Numeric, TypeDecorator


class JSONType(TypeDecorator):
    """JSON type that uses JSONB when supported."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return super().load_dialect_impl(dialect)


def usd_amount() -> Numeric:
    """Fiat amounts, stored to the cent."""

    return Numeric(precision=12, scale=2, asdecimal=True)


def token_amount() -> Numeric:
    """HKT amounts and unit prices (18 digits, 8 decimals)."""

    return Numeric(precision=26, scale=8, asdecimal=True)

"""Declarative base shared by the deployment and billing tables."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, MetaData, Numeric, Uuid
from sqlalchemy.orm import DeclarativeBase

# Money columns hold whole currency units with two decimal places of headroom
MONEY = Numeric(12, 2)

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base; UUID, datetime and Decimal columns map portably.

    Generic Uuid keeps the schema loadable on SQLite as well as PostgreSQL.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map = {
        UUID: Uuid(as_uuid=True),
        datetime: DateTime(timezone=True),
        Decimal: MONEY,
    }

    def to_dict(self) -> dict[str, Any]:
        """Column values with UUIDs, dates and amounts as strings."""
        row: dict[str, Any] = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, (UUID, Decimal)):
                value = str(value)
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            row[column.name] = value
        return row

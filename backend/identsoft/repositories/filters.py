"""Shared query helpers for the list operations."""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Query, Session

CENTS = Decimal("0.01")


def filtered_query(db: Session, model: Any, **filters: Optional[Any]) -> Query:
    """Query ``model`` with every non-None filter ANDed as an equality match.

    Results are ordered by primary key so listings are stable.
    """
    query = db.query(model)
    for column, value in filters.items():
        if value is not None:
            query = query.filter(getattr(model, column) == value)
    return query.order_by(model.id)


def to_money(value: Any) -> Decimal:
    """Normalize a stored Numeric(10, 2) value to a two-place Decimal."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)

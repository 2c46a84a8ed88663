from decimal import Decimal
from typing import Any, Dict, Optional


def iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def number(value) -> Optional[float]:
    return float(value) if value is not None else None


def row_to_dict(row) -> Optional[Dict[str, Any]]:
    """Plain JSON-safe dict of a model's columns, keyed by column name."""
    if row is None:
        return None
    data = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, Decimal):
            value = float(value)
        elif hasattr(value, "isoformat"):
            value = value.isoformat()
        data[column.name] = value
    return data


def pagination(total: int, limit: int, offset: int) -> Dict[str, Any]:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasMore": (offset + limit) < total,
    }

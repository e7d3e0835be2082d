"""
spac_os.services.common

Helpers shared by the entity services.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any


def jsonable(value: Any) -> Any:
    """Coerce a column value into something the JSON audit columns can store."""

    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): jsonable(v) for k, v in value.items()}
    return value


def apply_updates(entity: Any, updates: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """
    Set each attribute on `entity` and return `{field: {old, new}}` for the ones
    that actually changed.
    """

    changes: dict[str, dict[str, Any]] = {}
    for key, new in updates.items():
        old = getattr(entity, key)
        if old == new:
            continue
        changes[key] = {"old": jsonable(old), "new": jsonable(new)}
        setattr(entity, key, new)
    return changes


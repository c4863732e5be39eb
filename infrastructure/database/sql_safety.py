"""
SQL Safety Utilities
====================

Helpers that keep dict-key → column-name interpolation safe.

Plant updates, reminder state changes and preference writes arrive as
dicts. ``safe_columns()`` filters such a mapping so that only keys from an
explicit allowlist reach a ``SET …`` or ``INSERT … VALUES`` fragment;
anything else is dropped and logged.

Usage::

    from infrastructure.database.sql_safety import safe_columns, build_set_clause

    cols = safe_columns(changes, _PLANT_COLUMNS, context="update_plant")
    set_sql, params = build_set_clause(cols)
    db.execute(f"UPDATE Plants SET {set_sql} WHERE id = ?", [*params, plant_id])
"""

from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

# Column names must be simple identifiers: letters, digits, underscores.
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def safe_columns(
    data: dict[str, Any],
    allowed: frozenset[str] | set[str],
    *,
    context: str = "",
    drop_none: bool = False,
) -> dict[str, Any]:
    """Return *data* filtered to keys present in *allowed*.

    Parameters
    ----------
    data:
        Incoming dict (validated request payload or service-layer changes).
    allowed:
        Set of column names that may be interpolated into SQL.
    context:
        Label for log messages (e.g. ``"update_reminder"``).
    drop_none:
        If ``True``, also drop keys whose value is ``None``.
    """
    filtered: dict[str, Any] = {}
    rejected: list[str] = []

    for key, value in data.items():
        if key not in allowed or not _IDENT_RE.match(key):
            rejected.append(key)
            continue
        if drop_none and value is None:
            continue
        filtered[key] = value

    if rejected:
        logger.warning("safe_columns(%s): dropped non-allowed keys: %s", context or "?", rejected)

    return filtered


def build_set_clause(cols: dict[str, Any]) -> tuple[str, list[Any]]:
    """Build a ``SET col1 = ?, col2 = ?`` fragment from *cols*.

    >>> build_set_clause({"status": "snoozed", "snooze_count": 1})
    ('status = ?, snooze_count = ?', ['snoozed', 1])
    """
    clause = ", ".join(f"{k} = ?" for k in cols)
    return clause, list(cols.values())


def build_insert_parts(cols: dict[str, Any]) -> tuple[str, str, list[Any]]:
    """Build column-list, placeholder-list, and values for INSERT.

    >>> build_insert_parts({"plant_id": 1, "care_type": "watering"})
    ('plant_id, care_type', '?, ?', [1, 'watering'])
    """
    keys = list(cols.keys())
    return ", ".join(keys), ", ".join("?" for _ in keys), list(cols.values())


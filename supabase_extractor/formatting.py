"""SQL literal and identifier rendering for generated PostgreSQL scripts."""

from __future__ import annotations

import json
import logging
import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

logger = logging.getLogger(__name__)

_GENERIC_ARRAY_TYPE = "text[]"


def quote_identifier(name: str) -> str:
    """Quote a single identifier (schema, table, column, type)."""
    return '"' + str(name).replace('"', '""') + '"'


def quote_table(schema: str, table: str) -> str:
    """Quote schema.table for use in DDL and INSERT statements."""
    if schema:
        return f"{quote_identifier(schema)}.{quote_identifier(table)}"
    return quote_identifier(table)


def quote_literal(value: str) -> str:
    """Single-quote a string, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


def is_array_type(column_type: str | None) -> bool:
    if not column_type:
        return False
    return column_type.upper() == "ARRAY" or column_type.endswith("[]")


def _format_number(value: int | float | Decimal) -> str:
    if isinstance(value, Decimal):
        if not value.is_finite():
            return "NULL"
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return "NULL"
        # repr keeps full precision; integral floats render like JSON numbers
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _json_text(value: Any) -> str | None:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        logger.warning(f"Could not serialize value to JSON, using NULL: {e}")
        return None


def _format_array_element(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "'true'" if value else "'false'"
    if isinstance(value, (dict, list, tuple)):
        # json[] and jsonb[] elements
        payload = _json_text(value)
        return "NULL" if payload is None else quote_literal(payload)
    return quote_literal(str(value))


def _format_array(values: list[Any] | tuple[Any, ...], column_type: str) -> str:
    array_type = _GENERIC_ARRAY_TYPE if column_type.upper() == "ARRAY" else column_type
    elements = ",".join(_format_array_element(v) for v in values)
    return f"ARRAY[{elements}]::{array_type}"


def _format_json(value: Any) -> str:
    payload = _json_text(value)
    if payload is None:
        return "NULL"
    return f"{quote_literal(payload)}::jsonb"


def format_value(value: Any, column_type: str | None = None) -> str:
    """Render a field value as a PostgreSQL literal.

    ``column_type`` is the declared type of the column when known. It only
    changes the output for sequences stored in array columns, which become
    ``ARRAY[...]`` constructors instead of JSON.

    Never raises: values that cannot be represented become ``NULL``.
    """
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return quote_literal(value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return _format_number(value)
    if isinstance(value, (datetime, date, time)):
        return quote_literal(value.isoformat())
    if isinstance(value, (list, tuple)) and is_array_type(column_type):
        return _format_array(value, column_type)
    if isinstance(value, (dict, list, tuple)):
        return _format_json(value)
    try:
        text = str(value)
    except Exception as e:
        logger.warning(f"Could not convert {type(value).__name__} value to text, using NULL: {e}")
        return "NULL"
    return quote_literal(text)

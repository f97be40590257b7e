"""
Plain-data normalization for query results.

Results are deep-cloned through a JSON round trip, so callers receive only
dicts, lists, strings, numbers, booleans and None, detached from any driver
row objects.
"""

import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Mapping


def _json_default(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if hasattr(value, '_mapping'):
        return dict(value._mapping)
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.decode('utf-8', errors='replace')
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_plain_data(value: Any) -> Any:
    """Deep-clone a result into plain data; scalars pass through unchanged."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return json.loads(json.dumps(value, default=_json_default))

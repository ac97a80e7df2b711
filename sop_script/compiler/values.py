"""
Value rendering for S1 output.

Two encodings appear in compiled scripts:
- Condition operands: numbers stay bare, everything else is double-quoted.
- Action config values: compact JSON, matching what a browser's
  ``JSON.stringify`` produces so exported scripts are byte-for-byte stable
  between the editor preview and this service.

Both are total over the JSON value type and never raise.
"""

import json
import math
import re
from typing import Any

# Whole-string numeric literal: decimal with optional exponent, 0x/0o/0b
# integers, or signed Infinity.
_NUMERIC_RE = re.compile(
    r"""
    [+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?
    | 0[xX][0-9a-fA-F]+
    | 0[oO][0-7]+
    | 0[bB][01]+
    | [+-]?Infinity
    """,
    re.VERBOSE | re.ASCII,
)


def is_numeric_text(text: str) -> bool:
    """
    Return True if ``text`` parses fully as a number.

    Surrounding whitespace is ignored; blank text is not a number.

    Example:
        >>> is_numeric_text("42"), is_numeric_text(" 1e3 "), is_numeric_text("100x")
        (True, True, False)
    """
    stripped = text.strip()
    if not stripped:
        return False
    return _NUMERIC_RE.fullmatch(stripped) is not None


def format_number(value: int | float) -> str:
    """Render a number the way the script runtime prints it (``18.0`` -> ``18``)."""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return repr(value)


def format_operand(value: Any) -> str:
    """
    Render a condition operand.

    Numbers and numeric strings are emitted bare (a numeric string keeps its
    original text). Booleans and None render as ``true``/``false``/``null``.
    Anything else is wrapped in double quotes verbatim; embedded quotes are
    not escaped.

    Example:
        >>> format_operand("42"), format_operand("abc"), format_operand(18)
        ('42', '"abc"', '18')
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return format_number(value)

    text = str(value)
    if is_numeric_text(text):
        return text
    return f'"{text}"'


def to_json_compatible(obj: Any) -> Any:
    """
    Normalize a JSON value for browser-compatible serialization.

    - Integral floats become ints (``2.0`` -> ``2``)
    - NaN and infinities become None (serialized as ``null``)
    - Dict key order is preserved; nested values are normalized recursively

    Unlike canonical JSON, keys are never sorted: action config order is
    significant in compiled output.
    """
    if isinstance(obj, dict):
        return {str(k): to_json_compatible(v) for k, v in obj.items()}

    elif isinstance(obj, (list, tuple)):
        return [to_json_compatible(item) for item in obj]

    elif isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        if obj.is_integer():
            return int(obj)
        return obj

    else:
        return obj


def to_json_string(obj: Any) -> str:
    """
    Serialize a JSON value compactly, preserving key order.

    Example:
        >>> to_json_string({"to": "ops", "levels": [1, 2.0]})
        '{"to":"ops","levels":[1,2]}'
    """
    return json.dumps(
        to_json_compatible(obj),
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )

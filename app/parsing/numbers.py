from __future__ import annotations

import re
from typing import Optional, Union

# Longest leading float literal, same tolerance as a prefix float parse
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_locale_number(value: Union[str, int, float, None]) -> Optional[float]:
    """Parse a Brazilian formatted number (``1.000.000,50`` -> ``1000000.5``).

    Every ``.`` is a thousands separator and the first ``,`` is the decimal
    separator. Blank cells and the ``-`` placeholder give ``None``; so does
    anything without a leading numeric literal.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return None
    text = str(value)
    if text.strip() in ("", "-"):
        return None

    cleaned = text.replace(".", "").replace(",", ".", 1)
    m = _LEADING_FLOAT.match(cleaned)
    if not m:
        return None
    return float(m.group(1))

from __future__ import annotations

import math
import re
from typing import Any

from ..models import Number, is_finite

NUMBER_PATTERN = r"[-+]?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?"

_NUMERIC_RE = re.compile(rf"^{NUMBER_PATTERN}(?:\s*%)?$")
_LABELED_RE = re.compile(rf"^({NUMBER_PATTERN})\s+[a-z][a-z\s/_-]*$", re.IGNORECASE)


def parse_number(value: str) -> Number | None:
    """Parse a provider-formatted number.

    Accepts ``"12,345"``, ``"4.5%"`` and labeled values such as ``"42 opens"``.
    Anything else (including ``"42abc99"``) yields ``None``.
    """
    trimmed = value.strip()
    if not trimmed:
        return None

    numeric = trimmed
    if not _NUMERIC_RE.match(trimmed):
        labeled = _LABELED_RE.match(trimmed)
        if not labeled:
            return None
        numeric = labeled.group(1)

    normalized = numeric.replace(",", "").rstrip("%").strip()
    try:
        if "." in normalized:
            parsed: Number = float(normalized)
        else:
            parsed = int(normalized)
    except ValueError:
        return None
    if isinstance(parsed, float) and not math.isfinite(parsed):
        return None
    return parsed


def number_like(value: Any) -> Number | None:
    if value is None:
        return None
    if is_finite(value):
        return value
    if isinstance(value, str):
        return parse_number(value)
    return None


def to_unit_rate(value: Number | None) -> float | None:
    # Values above 1 are whole percentages; 0.5 stays 50% (known ambiguity).
    if value is None or not is_finite(value):
        return None
    if value <= 1:
        return float(value)
    return value / 100

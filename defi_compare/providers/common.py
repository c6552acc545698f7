"""Value coercion helpers shared by the provider normalizers."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a loosely-typed JSON number; ``None`` and junk become ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def raw_amount(formatted: Any, decimals: int) -> str:
    """Integer base-unit amount for a decimal quantity, without float rounding.

    Examples:
        ("1.5", 6) → "1500000"
        ("0.000000000000000001", 18) → "1"
    """
    if formatted is None:
        return "0"
    try:
        scaled = Decimal(str(formatted)).scaleb(decimals)
    except InvalidOperation:
        return "0"
    if not scaled.is_finite():
        return "0"
    return str(int(scaled))

"""
Normalize heterogeneous metric scalars and format them back for display.
"""
from __future__ import annotations

import re
from math import isfinite
from typing import Optional

PLACEHOLDER = "–"

DASH_VALUES = {"", "-", "–", "—", "n/a", "na"}
STRIP_CHARS_REGEX = re.compile(r"[€%\s]")
FLOAT_PREFIX_REGEX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
RANGE_SPLIT_REGEX = re.compile(r"\s*(?:-|–|\bto\b)\s*", re.IGNORECASE)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_number(raw: object) -> Optional[float]:
    """
    Turn a stored scalar into a float, or None when no number can be read.

    Accepts plain numbers and strings such as "1.234,56", "1,234.56",
    "12,5%" or "€ 30". When both separators appear, the last one is the
    decimal separator.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if _is_number(raw):
        value = float(raw)
        return value if isfinite(value) else None

    text = str(raw).strip()
    if text.lower() in DASH_VALUES:
        return None

    text = STRIP_CHARS_REGEX.sub("", text)
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".", 1)

    match = FLOAT_PREFIX_REGEX.match(text)
    if not match:
        return None
    value = float(match.group(0))
    return value if isfinite(value) else None


def _as_number(value: object) -> Optional[float]:
    if _is_number(value):
        number = float(value)
        return number if isfinite(number) else None
    return coerce_number(value)


def _trim_decimals(text: str) -> str:
    if "." not in text:
        return text
    return text.rstrip("0").rstrip(".")


def format_number(value: object) -> str:
    number = _as_number(value)
    if number is None:
        return PLACEHOLDER
    if abs(number) >= 1000:
        text = f"{number:,.0f}"
    else:
        text = _trim_decimals(f"{number:,.2f}")
    # "-0" after rounding a tiny negative
    return "0" if text == "-0" else text


def format_money(value: object) -> str:
    number = _as_number(value)
    if number is None:
        return PLACEHOLDER
    return f"{number:,.2f}"


def format_percent(value: object) -> str:
    """
    Values within [-1, 1] are read as fractions (0.125 -> "12.50%"), anything
    larger as an already scaled percentage (12.5 -> "12.50%").
    """
    number = _as_number(value)
    if number is None:
        return PLACEHOLDER
    if abs(number) <= 1:
        number *= 100
    return f"{number:.2f}%"


def format_maybe_range(value: object, kind: str = "number") -> str:
    """
    Render a metric that may be stored as a range, e.g. "3 - 5" -> "3 – 5".
    """
    if value is None or value == "":
        return PLACEHOLDER
    if _is_number(value):
        return format_money(value) if kind == "money" else format_number(value)

    text = str(value)
    parts = RANGE_SPLIT_REGEX.split(text.replace("€", "").strip())
    if len(parts) >= 2 and parts[0] and parts[1]:
        return f"{parts[0]} – {parts[1]}"
    return text if text.strip() else PLACEHOLDER

from __future__ import annotations

import re

from booking_core.core.config import settings

_CENTS_PATTERN = re.compile(r"^-?\d+$")


def parse_cents(value: object) -> int:
    """Parse a wire amount (integer or string of minor units) into an int.

    Fractional values are rejected rather than rounded: amounts arrive as
    minor units and anything else indicates a contract violation.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid amount: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"fractional minor-unit amount: {value!r}")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if _CENTS_PATTERN.match(text):
            return int(text)
        if re.match(r"^-?\d+\.0+$", text):
            return int(text.split(".")[0])
    raise ValueError(f"invalid amount: {value!r}")


def round_half_up_div(numerator: int, denominator: int) -> int:
    """Integer division rounding halves away from zero for non-negative inputs."""
    if numerator < 0 or denominator <= 0:
        raise ValueError("round_half_up_div expects a non-negative numerator and positive denominator")
    return (2 * numerator + denominator) // (2 * denominator)


def format_amount(cents: int, symbol: str | None = None) -> str:
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    sign = "-" if cents < 0 else ""
    whole, fraction = divmod(abs(cents), 100)
    return f"{sign}{symbol}{whole:,}.{fraction:02d}"

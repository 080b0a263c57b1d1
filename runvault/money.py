"""Minor-unit money helpers.

All ledger amounts are integers in minor units (cents). Rounding is
half-up on the real value so results do not depend on banker's rounding.
"""

import math
import re
from numbers import Real
from typing import Optional

MINOR_PER_MAJOR = 100

_AMOUNT_RE = re.compile(r"^\s*\$?\s*(\d+(?:,\d{3})*|\d*)(?:\.(\d{0,2}))?\s*$")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))


def is_finite_number(value) -> bool:
    """True for real, finite numbers (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(float(value))


def as_minor(value) -> Optional[int]:
    """Coerce a minor-unit amount to ``int``.

    Returns:
        The integer amount, or None when the value is not a finite
        integral number.
    """
    if not is_finite_number(value):
        return None
    if isinstance(value, int):
        return value
    value = float(value)
    if not value.is_integer():
        return None
    return int(value)


def parse_amount_minor(text: str) -> Optional[int]:
    """Parse a major-unit string such as ``"1,250.50"`` into minor units.

    Args:
        text: User-entered amount, optionally prefixed with ``$``.

    Returns:
        Amount in minor units, or None if the text is not a valid amount.
    """
    match = _AMOUNT_RE.match(text or "")
    if not match:
        return None
    whole, frac = match.group(1), match.group(2)
    if not whole and not frac:
        return None
    whole_minor = int(whole.replace(",", "") or "0") * MINOR_PER_MAJOR
    frac_minor = int((frac or "").ljust(2, "0") or "0")
    return whole_minor + frac_minor


def to_minor(major: float) -> int:
    """Convert a major-unit amount to minor units."""
    return round_half_up(major * MINOR_PER_MAJOR)


def format_minor(minor: int) -> str:
    """Format minor units as a dollar string, e.g. ``-$1,234.56``."""
    sign = "-" if minor < 0 else ""
    return f"{sign}${abs(minor) / MINOR_PER_MAJOR:,.2f}"


def format_percent(value: Optional[float]) -> str:
    """Format a percentage with precision that depends on its magnitude.

    Below 1% uses two decimals, below 100% one decimal, otherwise an
    integer. Undefined values render as a neutral dash.
    """
    if value is None or not math.isfinite(value):
        return "—"
    magnitude = abs(value)
    if magnitude == 0:
        return "0%"
    if magnitude < 1:
        return f"{value:.2f}%"
    if magnitude < 100:
        return f"{value:.1f}%"
    return f"{round_half_up(value)}%"

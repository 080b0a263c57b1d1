"""Run platform catalog."""

from typing import Iterable, Optional

DEFAULT_PLATFORMS = ("Binance", "OKX", "Bybit")


def normalize_platforms(names: Optional[Iterable]) -> list[str]:
    """Keep supported platform names, de-duplicated in first-seen order.

    Args:
        names: Candidate names from configuration. Non-strings are ignored.

    Returns:
        Non-empty list of platform names; the default catalog when no
        valid name is given.
    """
    if names is None or isinstance(names, str):
        return list(DEFAULT_PLATFORMS)

    seen: list[str] = []
    for raw in names:
        if not isinstance(raw, str):
            continue
        name = raw.strip()
        if name in DEFAULT_PLATFORMS and name not in seen:
            seen.append(name)
    return seen or list(DEFAULT_PLATFORMS)


def list_platforms(configured: Optional[Iterable] = None) -> list[str]:
    """Platforms the order engine may attribute orders to."""
    return normalize_platforms(configured)

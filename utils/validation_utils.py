"""
utils/validation_utils.py

Purpose: Intent slot validation and formatting

- Positive amount checks (absent and non-positive are both rejected)
- Exactly-one quantity kind resolution
- Quantity and money formatting for replies
- Markdown escaping of user-supplied text
"""

import re
from typing import Optional, Tuple, Union

from app.models.offer import QuantityKind

Quantity = Union[float, int]


def is_positive(value: Optional[float]) -> bool:
    """
    Checks that a slot was provided and is strictly positive.

    Args:
        value: Slot value, None if the extractor did not provide it

    Returns:
        True if value is present and > 0
    """
    return value is not None and value > 0


def resolve_quantity(
    mass: Optional[float],
    units: Optional[int]
) -> Optional[Tuple[QuantityKind, Quantity]]:
    """
    Picks the single quantity kind of an order.

    Exactly one of mass and units must be positive. If neither or both are,
    the order is ambiguous and None is returned.

    Examples:
        resolve_quantity(500.0, None) -> (QuantityKind.MASS, 500.0)
        resolve_quantity(None, 12) -> (QuantityKind.UNITS, 12)
        resolve_quantity(500.0, 12) -> None
    """
    given = []
    if is_positive(mass):
        given.append((QuantityKind.MASS, float(mass)))
    if is_positive(units):
        given.append((QuantityKind.UNITS, int(units)))

    if len(given) != 1:
        return None
    return given[0]


def format_quantity(quantity: Quantity) -> str:
    """Formats a quantity without a trailing .0 (500.0 -> "500")."""
    if isinstance(quantity, float) and quantity.is_integer():
        return str(int(quantity))
    return str(quantity)


def format_money(amount: float) -> str:
    """Formats a currency amount with two decimals (10 -> "10.00")."""
    return f"{amount:.2f}"


_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """
    Escapes user-supplied text for Telegram's Markdown parse mode.

    Escaped text must sit outside any entity, so templates never wrap a
    user value in * or _.

    Examples:
        escape_markdown("ana_b") -> "ana\\_b"
    """
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)

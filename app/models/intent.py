"""
app/models/intent.py

Purpose: Classified message model

- Slug produced by the intent extractor
- Optional typed slots; None means "not provided", distinct from zero
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


# Slug reported when the extractor recognises no intent at all
UNKNOWN_SLUG = "unknown"


class IntentSlug(str, Enum):
    """Intent slugs the bot understands."""

    # Onboarding
    GET_NAME = "get_name"
    GET_LOCATION = "get_location"
    GET_TYPE_FARMER = "get_type_farmer"
    GET_TYPE_BUYER = "get_type_buyer"

    # Marketplace
    GREETINGS = "greetings"
    FIND_FARMERS = "find_farmers"
    SELL_PRODUCT = "sell_product"
    BUY_PRODUCT = "buy_product"
    ASK_PRICE = "ask_price"


class Intent(BaseModel):
    slug: str = UNKNOWN_SLUG
    person_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    product: Optional[str] = None
    mass: Optional[float] = None      # grams
    units: Optional[int] = None
    dollars: Optional[float] = None

    @property
    def known_slug(self) -> Optional[IntentSlug]:
        """The slug as an IntentSlug, or None if the bot does not know it."""
        try:
            return IntentSlug(self.slug)
        except ValueError:
            return None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def product_name(self) -> Optional[str]:
        if self.product is None:
            return None
        name = self.product.strip()
        return name or None

"""
app/models/offer.py

Purpose: Product and offer document models

- Products are keyed by their case-sensitive name
- An offer carries its remaining quantity in exactly one unit (mass or units)
- normalized_price is fixed at creation and never recomputed
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class QuantityKind(str, Enum):
    """Unit of an offer's quantity. The value doubles as the document field name."""

    MASS = "mass"    # grams
    UNITS = "units"  # discrete count


class Product(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[Any] = Field(default=None, alias="_id")
    name: str


class Offer(BaseModel):
    """A standing sell listing."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[Any] = Field(default=None, alias="_id")
    product: Any
    seller: Any
    price: float
    normalized_price: float
    quantity_kind: QuantityKind
    mass: Optional[float] = None
    units: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def quantity(self) -> Union[float, int]:
        """Remaining quantity in the offer's own unit."""
        if self.quantity_kind == QuantityKind.MASS:
            return self.mass or 0.0
        return self.units or 0

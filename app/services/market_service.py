"""
app/services/market_service.py

Purpose: Product and offer persistence

- Find-or-create products by name (single upsert)
- Create sell offers with their normalized price
- Atomically select-and-reserve quantity on a matching offer
- Average normalized price per product
"""

from datetime import datetime
from typing import Any, Optional, Union

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument

from app.db.mongo import get_products_collection, get_offers_collection
from app.models.offer import Offer, Product, QuantityKind
from app.core.logging import get_logger

logger = get_logger(__name__)

Quantity = Union[float, int]


class MarketService:
    """Market store backed by the products and offers collections."""

    def __init__(
        self,
        products: Optional[AsyncIOMotorCollection] = None,
        offers: Optional[AsyncIOMotorCollection] = None
    ):
        self.products = products
        self.offers = offers

    def _get_products(self) -> AsyncIOMotorCollection:
        if self.products is None:
            self.products = get_products_collection()
        return self.products

    def _get_offers(self) -> AsyncIOMotorCollection:
        if self.offers is None:
            self.offers = get_offers_collection()
        return self.offers

    async def find_or_create_product(self, name: str) -> Product:
        """
        Returns the product with this exact name, creating it if needed.

        The upsert makes concurrent first references resolve to one document.
        """
        document = await self._get_products().find_one_and_update(
            {"name": name},
            {"$setOnInsert": {"name": name, "created_at": datetime.utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return Product.model_validate(document)

    async def create_offer(
        self,
        seller: Any,
        product: Any,
        price: float,
        quantity: Quantity,
        kind: QuantityKind
    ) -> Offer:
        """
        Creates a sell offer.

        Args:
            seller: Seller user _id
            product: Product _id
            price: Price for the whole quantity
            quantity: Positive quantity in the unit given by kind
            kind: Quantity unit

        Returns:
            The stored offer
        """
        document = {
            "product": product,
            "seller": seller,
            "price": price,
            "normalized_price": price / quantity,
            "quantity_kind": kind.value,
            kind.value: quantity,
            "created_at": datetime.utcnow(),
        }
        result = await self._get_offers().insert_one(document)
        document["_id"] = result.inserted_id

        logger.info(
            f"Offer created: {quantity} {kind.value} at normalized price {document['normalized_price']}",
            extra={"offer_id": str(result.inserted_id)}
        )
        return Offer.model_validate(document)

    async def reserve_if_available(
        self,
        product: Any,
        kind: QuantityKind,
        bid_normalized_price: float,
        quantity: Quantity
    ) -> Optional[Offer]:
        """
        Finds a qualifying offer and reserves quantity on it in one operation.

        An offer qualifies if it is for this product, uses the same quantity
        kind, has strictly more remaining than requested and a normalized price
        strictly below the bid. The cheapest qualifying offer wins, ties going
        to the oldest.

        Returns:
            The offer after the reservation, or None if nothing qualifies
        """
        document = await self._get_offers().find_one_and_update(
            {
                "product": product,
                "quantity_kind": kind.value,
                kind.value: {"$gt": quantity},
                "normalized_price": {"$lt": bid_normalized_price},
            },
            {"$inc": {kind.value: -quantity}},
            sort=[("normalized_price", ASCENDING), ("_id", ASCENDING)],
            return_document=ReturnDocument.AFTER
        )
        if document is None:
            return None

        logger.info(
            f"Reserved {quantity} {kind.value} on offer",
            extra={"offer_id": str(document["_id"])}
        )
        return Offer.model_validate(document)

    async def average_price(self, product: Any) -> Optional[float]:
        """
        Mean normalized price over all offers of a product.

        Returns:
            The average, or None if the product has no offers
        """
        pipeline = [
            {"$match": {"product": product}},
            {"$group": {"_id": "$product", "avgPrice": {"$avg": "$normalized_price"}}},
        ]
        async for aggregate in self._get_offers().aggregate(pipeline):
            value = aggregate.get("avgPrice")
            if value is not None:
                return float(value)
        return None


# Global service instance
_market_service: Optional[MarketService] = None


def get_market_service() -> MarketService:
    """Get or create market service instance."""
    global _market_service
    if _market_service is None:
        _market_service = MarketService()
    return _market_service

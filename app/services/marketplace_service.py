"""
app/services/marketplace_service.py

Purpose: Marketplace operations for active users

- Nearby farmer discovery
- Sell offer creation
- Buy order matching with atomic reservation and seller notification
- Average price lookup

Validation problems are answered with guidance messages, never raised.
Store and extractor failures propagate to the dispatcher.
"""

from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.models.intent import Intent
from app.models.offer import Offer, QuantityKind
from app.models.user import User
from app.services.market_service import MarketService, get_market_service
from app.services.telegram_service import TelegramService, get_telegram_service
from app.services.user_service import UserService, get_user_service
from utils import constants
from utils.validation_utils import (
    escape_markdown,
    format_money,
    format_quantity,
    is_positive,
    resolve_quantity,
)

logger = get_logger(__name__)


class MarketplaceService:
    """
    Stateless request/response marketplace engine.

    All state lives in the stores; the only shared mutable resource is an
    offer's remaining quantity, which is changed solely through
    MarketService.reserve_if_available.
    """

    def __init__(
        self,
        users: Optional[UserService] = None,
        market: Optional[MarketService] = None,
        notifier: Optional[TelegramService] = None,
        nearby_radius: Optional[float] = None
    ):
        self.users = users or get_user_service()
        self.market = market or get_market_service()
        self.notifier = notifier or get_telegram_service()
        self.nearby_radius = nearby_radius or settings.NEARBY_RADIUS_METERS

    async def farmers_nearby(self, user: User) -> str:
        """
        Lists farmers within the search radius, nearest first.

        Entries are numbered from 1, counting only farmers other than the
        caller.
        """
        if user.location is None:
            logger.warning(f"Active user {user.user_id} has no location, cannot search nearby farmers")
            return constants.NO_LOCATION_MESSAGE

        nearby = await self.users.find_near(user.location.lat, user.location.lng, self.nearby_radius)

        lines = []
        index = 1
        for candidate in nearby:
            if not candidate.is_farmer or candidate.user_id == user.user_id:
                continue
            lines.append(constants.FARMER_LIST_ENTRY.format(
                index=index,
                name=escape_markdown(candidate.display_name),
                distance=round(candidate.distance or 0)
            ))
            index += 1

        if not lines:
            return constants.NO_FARMERS_NEARBY_MESSAGE

        return "\n".join([constants.FARMERS_NEARBY_HEADER] + lines)

    async def sell_product(self, user: User, intent: Intent) -> str:
        """Creates a sell offer for a farmer."""
        if not user.is_farmer:
            return constants.SELL_NOT_FARMER_MESSAGE

        product_name = intent.product_name
        quantity = resolve_quantity(intent.mass, intent.units)
        if product_name is None or not is_positive(intent.dollars) or quantity is None:
            return constants.SELL_MISSING_DETAILS_MESSAGE

        kind, amount = quantity
        price = intent.dollars

        with LogContext(user_id=user.user_id):
            product = await self.market.find_or_create_product(product_name)
            await self.market.create_offer(user.id, product.id, price, amount, kind)

        template = (
            constants.SELL_MASS_CONFIRMATION
            if kind == QuantityKind.MASS
            else constants.SELL_UNITS_CONFIRMATION
        )
        return template.format(
            quantity=format_quantity(amount),
            product=escape_markdown(product_name),
            price=format_money(price)
        )

    async def buy_product(self, user: User, intent: Intent) -> str:
        """
        Matches a buy order against standing offers.

        The inventory is committed first; the seller notification afterwards
        is best effort and a failure is only logged.
        """
        product_name = intent.product_name
        quantity = resolve_quantity(intent.mass, intent.units)
        if product_name is None or not is_positive(intent.dollars) or quantity is None:
            return constants.BUY_MISSING_DETAILS_MESSAGE

        kind, amount = quantity
        price = intent.dollars
        bid = price / amount

        with LogContext(user_id=user.user_id):
            product = await self.market.find_or_create_product(product_name)
            offer = await self.market.reserve_if_available(product.id, kind, bid, amount)
            if offer is None:
                logger.info(f"No offer for {product_name} below {bid} per {kind.value}")
                return constants.BUY_NOT_FULFILLABLE_MESSAGE

            # Inventory is committed from here on; nothing below may fail the reply
            seller = await self._load_seller(offer)
            seller_name = escape_markdown(seller.display_name) if seller else "a farmer"

            if seller is not None:
                await self._notify_seller(seller, user, product_name, amount, kind, price)

        template = (
            constants.BUY_MASS_CONFIRMATION
            if kind == QuantityKind.MASS
            else constants.BUY_UNITS_CONFIRMATION
        )
        return template.format(
            quantity=format_quantity(amount),
            product=escape_markdown(product_name),
            seller=seller_name,
            price=format_money(price)
        )

    async def _load_seller(self, offer: Offer) -> Optional[User]:
        try:
            seller = await self.users.get_user_by_object_id(offer.seller)
        except Exception as e:
            logger.error(f"❌ Error loading seller: {e}", extra={"offer_id": str(offer.id)}, exc_info=True)
            return None

        if seller is None:
            logger.error("Reserved offer references a missing seller", extra={"offer_id": str(offer.id)})
        return seller

    async def _notify_seller(
        self,
        seller: User,
        buyer: User,
        product_name: str,
        amount,
        kind: QuantityKind,
        price: float
    ) -> None:
        template = (
            constants.SELLER_MASS_NOTIFICATION
            if kind == QuantityKind.MASS
            else constants.SELLER_UNITS_NOTIFICATION
        )
        text = template.format(
            buyer=escape_markdown(buyer.display_name),
            quantity=format_quantity(amount),
            product=escape_markdown(product_name),
            price=format_money(price)
        )

        try:
            result = await self.notifier.send_message(seller.user_id, text)
        except Exception as e:
            logger.error(f"❌ Error notifying seller: {e}", extra={"seller_id": seller.user_id}, exc_info=True)
            return

        if not result.get("success"):
            # Reservation stays committed; the seller is not retried
            logger.error(
                f"❌ Failed to notify seller: {result.get('error')}",
                extra={"seller_id": seller.user_id}
            )

    async def market_prices(self, intent: Intent) -> str:
        """Reports the average normalized price of a product."""
        product_name = intent.product_name
        if product_name is None:
            return constants.PRICE_MISSING_PRODUCT_MESSAGE

        product = await self.market.find_or_create_product(product_name)
        average = await self.market.average_price(product.id)
        if average is None:
            return constants.PRICE_NO_OFFERS_MESSAGE.format(product=escape_markdown(product_name))

        return constants.PRICE_AVERAGE_MESSAGE.format(
            product=escape_markdown(product_name),
            price=format_money(average)
        )

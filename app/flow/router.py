"""
app/flow/router.py

Purpose: Intent routing for active users

- Maps every IntentSlug to a marketplace operation
- Folds known misclassifications onto the intended operation
- Answers unknown or unsupported slugs with a fallback reply
"""

from typing import Awaitable, Callable, Dict, Optional

from app.core.logging import get_logger
from app.flow.states import UserRole
from app.models.intent import Intent, IntentSlug
from app.models.user import User
from app.services.marketplace_service import MarketplaceService
from utils import constants
from utils.validation_utils import escape_markdown

logger = get_logger(__name__)

Handler = Callable[["IntentRouter", User, Intent], Awaitable[str]]


async def _greet(router: "IntentRouter", user: User, intent: Intent) -> str:
    template = (
        constants.GREETING_FARMER_MESSAGE
        if user.kind == UserRole.FARMER
        else constants.GREETING_CONSUMER_MESSAGE
    )
    return template.format(name=escape_markdown(user.display_name))


async def _farmers_nearby(router: "IntentRouter", user: User, intent: Intent) -> str:
    return await router.marketplace.farmers_nearby(user)


async def _sell(router: "IntentRouter", user: User, intent: Intent) -> str:
    return await router.marketplace.sell_product(user, intent)


async def _buy(router: "IntentRouter", user: User, intent: Intent) -> str:
    return await router.marketplace.buy_product(user, intent)


async def _prices(router: "IntentRouter", user: User, intent: Intent) -> str:
    return await router.marketplace.market_prices(intent)


async def _unsupported(router: "IntentRouter", user: User, intent: Intent) -> str:
    return constants.UNSUPPORTED_INTENT_MESSAGE.format(
        name=escape_markdown(user.display_name),
        slug=escape_markdown(intent.slug)
    )


ROUTES: Dict[IntentSlug, Handler] = {
    IntentSlug.GREETINGS: _greet,
    IntentSlug.FIND_FARMERS: _farmers_nearby,
    IntentSlug.SELL_PRODUCT: _sell,
    # CAI reports offers like "I am selling tomatoes" as the onboarding role intent
    IntentSlug.GET_TYPE_FARMER: _sell,
    IntentSlug.BUY_PRODUCT: _buy,
    IntentSlug.GET_TYPE_BUYER: _buy,
    IntentSlug.ASK_PRICE: _prices,
    IntentSlug.GET_NAME: _unsupported,
    IntentSlug.GET_LOCATION: _unsupported,
}

_unrouted = [slug.value for slug in IntentSlug if slug not in ROUTES]
if _unrouted:
    raise RuntimeError(f"Intent slugs without a route: {', '.join(_unrouted)}")


class IntentRouter:
    """Dispatches a classified intent to the marketplace."""

    def __init__(self, marketplace: Optional[MarketplaceService] = None):
        self.marketplace = marketplace or MarketplaceService()

    async def route(self, user: User, intent: Intent) -> str:
        """
        Produces the reply for an active user's message.

        Args:
            user: Active user
            intent: Classified message

        Returns:
            Reply text
        """
        slug = intent.known_slug
        handler = ROUTES[slug] if slug is not None else _unsupported

        logger.info(f"🚦 Routing {intent.slug} to {handler.__name__}")
        return await handler(self, user, intent)

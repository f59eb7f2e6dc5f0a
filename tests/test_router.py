import pytest

from app.flow.router import ROUTES
from app.flow.states import UserRole
from app.models.intent import Intent, IntentSlug
from utils import constants


def test_every_slug_has_a_route():
    assert set(ROUTES) == set(IntentSlug)


async def test_greeting_depends_on_role(router, users):
    farmer = users.add("F1", name="Ana", kind=UserRole.FARMER)
    consumer = users.add("C1", name="Bea", kind=UserRole.CONSUMER)

    assert await router.route(farmer, Intent(slug="greetings")) == \
        constants.GREETING_FARMER_MESSAGE.format(name="Ana")
    assert await router.route(consumer, Intent(slug="greetings")) == \
        constants.GREETING_CONSUMER_MESSAGE.format(name="Bea")


async def test_unknown_slug_falls_back(router, users):
    user = users.add("C1", name="Bea", kind=UserRole.CONSUMER)

    reply = await router.route(user, Intent(slug="tell_joke"))

    assert reply == constants.UNSUPPORTED_INTENT_MESSAGE.format(name="Bea", slug="tell\\_joke")


async def test_onboarding_slugs_fall_back_when_active(router, users):
    user = users.add("C1", name="Bea", kind=UserRole.CONSUMER)

    reply = await router.route(user, Intent(slug="get_name", person_name="Bea"))

    assert "Bea" in reply
    assert "get\\_name" in reply


async def test_role_slugs_are_trade_synonyms(router, users, market):
    farmer = users.add("F1", name="Ana", kind=UserRole.FARMER)

    reply = await router.route(
        farmer,
        Intent(slug="get_type_farmer", product="tomato", mass=500, dollars=10)
    )

    assert reply == constants.SELL_MASS_CONFIRMATION.format(quantity="500", product="tomato", price="10.00")
    assert len(market.offers) == 1


@pytest.mark.parametrize("slug", ["buy_product", "get_type_buyer"])
async def test_buy_synonyms(router, users, slug):
    consumer = users.add("C1", name="Bea", kind=UserRole.CONSUMER)

    reply = await router.route(consumer, Intent(slug=slug, product="tomato", mass=200, dollars=6))

    assert reply == constants.BUY_NOT_FULFILLABLE_MESSAGE


async def test_greeting_escapes_name(router, users):
    user = users.add("F1", name="ana_b", kind=UserRole.FARMER)

    reply = await router.route(user, Intent(slug="greetings"))

    assert reply == constants.GREETING_FARMER_MESSAGE.format(name="ana\\_b")

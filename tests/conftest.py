import asyncio
import math
from typing import Any, Dict, List, Optional

import pytest

from app.core.exceptions import ExternalServiceError
from app.flow.machine import ConversationStateMachine
from app.flow.router import IntentRouter
from app.flow.states import UserAction, UserRole
from app.models.intent import Intent
from app.models.offer import Offer, Product, QuantityKind
from app.models.user import GeoPoint, User, new_user_document
from app.services.marketplace_service import MarketplaceService


def _haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    lat1, lng1, lat2, lng2 = map(math.radians, (a.lat, a.lng, b.lat, b.lng))
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    return 2 * 6371008.8 * math.asin(math.sqrt(h))


class FakeUserService:
    """In-memory users collection with the UserService interface."""

    def __init__(self):
        self.documents: Dict[str, dict] = {}
        self._next_id = 1

    def add(
        self,
        user_id: str,
        name: Optional[str] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        kind: Optional[UserRole] = None,
        requirements: Optional[List[str]] = None,
    ) -> User:
        document = new_user_document(user_id)
        document["_id"] = self._next_id
        self._next_id += 1
        document["name"] = name
        document["kind"] = kind.value if kind else None
        if lat is not None and lng is not None:
            document["location"] = GeoPoint.from_lat_lng(lat, lng).model_dump()
        if requirements is None:
            document["action"] = UserAction.NONE.value
            document["requirements"] = []
        else:
            document["requirements"] = list(requirements)
        self.documents[user_id] = document
        return User.model_validate(document)

    def doc(self, user_id: str) -> dict:
        return self.documents[user_id]

    async def get_user(self, user_id: str) -> Optional[User]:
        document = self.documents.get(user_id)
        return User.model_validate(document) if document else None

    async def get_user_by_object_id(self, object_id: Any) -> Optional[User]:
        for document in self.documents.values():
            if document["_id"] == object_id:
                return User.model_validate(document)
        return None

    async def create_user(self, user_id: str) -> User:
        document = new_user_document(user_id)
        document["_id"] = self._next_id
        self._next_id += 1
        self.documents[user_id] = document
        return User.model_validate(document)

    async def set_name(self, user_id: str, name: str) -> bool:
        self.documents[user_id]["name"] = name
        return True

    async def set_location(self, user_id: str, lat: float, lng: float) -> bool:
        self.documents[user_id]["location"] = GeoPoint.from_lat_lng(lat, lng).model_dump()
        return True

    async def set_role(self, user_id: str, role: UserRole) -> bool:
        self.documents[user_id]["kind"] = role.value
        return True

    async def pop_requirement(self, user_id: str) -> bool:
        requirements = self.documents[user_id]["requirements"]
        if not requirements:
            return False
        requirements.pop(0)
        return True

    async def reset_state(self, user_id: str) -> bool:
        self.documents[user_id]["action"] = UserAction.NONE.value
        self.documents[user_id]["requirements"] = []
        return True

    async def find_near(self, lat: float, lng: float, radius: float) -> List[User]:
        origin = GeoPoint.from_lat_lng(lat, lng)
        found = []
        for document in self.documents.values():
            if not document.get("location"):
                continue
            distance = _haversine_m(origin, GeoPoint(**document["location"]))
            if distance <= radius:
                found.append(User.model_validate({**document, "distance": distance}))
        return sorted(found, key=lambda user: user.distance)


class FakeMarketService:
    """In-memory products/offers with the MarketService interface."""

    def __init__(self):
        self.products: Dict[str, dict] = {}
        self.offers: List[dict] = []
        self._next_id = 1000

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def find_or_create_product(self, name: str) -> Product:
        if name not in self.products:
            self.products[name] = {"_id": self._new_id(), "name": name}
        return Product.model_validate(self.products[name])

    async def create_offer(self, seller, product, price, quantity, kind: QuantityKind) -> Offer:
        document = {
            "_id": self._new_id(),
            "product": product,
            "seller": seller,
            "price": price,
            "normalized_price": price / quantity,
            "quantity_kind": kind.value,
            kind.value: quantity,
        }
        self.offers.append(document)
        return Offer.model_validate(document)

    async def reserve_if_available(self, product, kind: QuantityKind, bid_normalized_price, quantity) -> Optional[Offer]:
        # Yield first so concurrent callers interleave up to the atomic step
        await asyncio.sleep(0)
        candidates = [
            offer for offer in self.offers
            if offer["product"] == product
            and offer["quantity_kind"] == kind.value
            and offer.get(kind.value, 0) > quantity
            and offer["normalized_price"] < bid_normalized_price
        ]
        if not candidates:
            return None
        winner = min(candidates, key=lambda offer: (offer["normalized_price"], offer["_id"]))
        winner[kind.value] -= quantity
        return Offer.model_validate(winner)

    async def average_price(self, product) -> Optional[float]:
        prices = [offer["normalized_price"] for offer in self.offers if offer["product"] == product]
        if not prices:
            return None
        return sum(prices) / len(prices)


class FakeIntentService:
    """Classifies by exact text lookup; unknown texts get the unknown slug."""

    def __init__(self):
        self.intents: Dict[str, Intent] = {}
        self.calls: List[str] = []
        self.error: Optional[Exception] = None

    def on(self, text: str, **fields) -> None:
        self.intents[text] = Intent(**fields)

    async def classify(self, text: str) -> Intent:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.intents.get(text, Intent())


class FakeNotifier:
    def __init__(self):
        self.sent: List[tuple] = []
        self.fail = False
        self.error: Optional[Exception] = None

    async def send_message(self, chat_id: str, message: str) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.sent.append((chat_id, message))
        if self.fail:
            return {"success": False, "error": "Telegram API error: 403"}
        return {"success": True, "message_id": len(self.sent)}


class AsyncCursor:
    """Stands in for the cursor returned by motor's aggregate()."""

    def __init__(self, documents):
        self._documents = iter(documents)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._documents)
        except StopIteration:
            raise StopAsyncIteration


@pytest.fixture
def async_cursor():
    return AsyncCursor


@pytest.fixture
def users():
    return FakeUserService()


@pytest.fixture
def market():
    return FakeMarketService()


@pytest.fixture
def extractor():
    return FakeIntentService()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def marketplace(users, market, notifier):
    return MarketplaceService(users=users, market=market, notifier=notifier, nearby_radius=2000)


@pytest.fixture
def router(marketplace):
    return IntentRouter(marketplace=marketplace)


@pytest.fixture
def machine(users, extractor, router):
    return ConversationStateMachine(users=users, extractor=extractor, router=router)


@pytest.fixture
def collaborator_down():
    return ExternalServiceError("Intent extractor unavailable")

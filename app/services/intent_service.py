"""
app/services/intent_service.py

Purpose: Message classification via SAP Conversational AI

- Sends the raw message text to the CAI request endpoint
- Maps the first intent and the recognised entities onto an Intent
- Raises ExternalServiceError on transport, HTTP or payload failures
"""

import httpx
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger
from app.models.intent import Intent, UNKNOWN_SLUG

logger = get_logger(__name__)


def _first(entities: Dict[str, List[Dict[str, Any]]], name: str) -> Optional[Dict[str, Any]]:
    values = entities.get(name) or []
    return values[0] if values else None


def parse_cai_response(payload: Dict[str, Any]) -> Intent:
    """
    Converts a CAI /v2/request response body into an Intent.

    Example payload (abridged):
        {
            "results": {
                "intents": [{"slug": "sell_product", "confidence": 0.97}],
                "entities": {
                    "product": [{"value": "tomato"}],
                    "mass": [{"grams": 500.0}],
                    "money": [{"dollars": 10.0}]
                }
            }
        }
    """
    results = payload.get("results") or {}
    intents = results.get("intents") or []
    entities = results.get("entities") or {}

    slug = intents[0].get("slug") if intents else None
    intent = Intent(slug=slug or UNKNOWN_SLUG)

    person = _first(entities, "person")
    if person and person.get("fullname"):
        intent.person_name = person["fullname"].strip()

    location = _first(entities, "location")
    if location and location.get("lat") is not None and location.get("lng") is not None:
        intent.latitude = float(location["lat"])
        intent.longitude = float(location["lng"])
        intent.address = location.get("formatted")

    product = _first(entities, "product")
    if product and product.get("value"):
        intent.product = product["value"]

    mass = _first(entities, "mass")
    if mass and mass.get("grams") is not None:
        intent.mass = float(mass["grams"])

    number = _first(entities, "number")
    if number and number.get("scalar") is not None:
        scalar = float(number["scalar"])
        if scalar.is_integer():
            intent.units = int(scalar)
        else:
            # Fractional piece counts stay unset
            logger.info(f"Ignoring non-integral count {scalar}")

    money = _first(entities, "money")
    if money and money.get("dollars") is not None:
        intent.dollars = float(money["dollars"])

    return intent


class IntentService:
    """Client for the SAP Conversational AI request API."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.token = settings.CAI_TOKEN
        self.url = settings.CAI_API_URL
        self.language = settings.CAI_LANGUAGE
        self._client = client

    async def _post(self, text: str) -> httpx.Response:
        data = {"text": text, "language": self.language}
        headers = {"Authorization": f"Token {self.token}"}

        if self._client is not None:
            return await self._client.post(self.url, data=data, headers=headers)

        async with httpx.AsyncClient(timeout=settings.COLLABORATOR_TIMEOUT_SECONDS) as client:
            return await client.post(self.url, data=data, headers=headers)

    async def classify(self, text: str) -> Intent:
        """
        Classifies a message.

        Args:
            text: Raw message text

        Returns:
            Intent with slug and whichever slots CAI recognised

        Raises:
            ExternalServiceError: If CAI cannot be reached or answers badly
        """
        try:
            response = await self._post(text)
        except httpx.TimeoutException as e:
            logger.error("CAI request timeout")
            raise ExternalServiceError("Intent extractor timeout") from e
        except httpx.HTTPError as e:
            logger.error(f"CAI request failed: {e}")
            raise ExternalServiceError("Intent extractor unavailable") from e

        if response.status_code != 200:
            logger.error(f"❌ CAI API error: {response.status_code} - {response.text[:200]}")
            raise ExternalServiceError(
                f"Intent extractor error: {response.status_code}",
                details={"status_code": response.status_code}
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalServiceError("Intent extractor returned invalid JSON") from e

        try:
            intent = parse_cai_response(payload)
        except (AttributeError, TypeError, ValueError) as e:
            raise ExternalServiceError("Intent extractor returned an unexpected payload") from e

        logger.info(f"🧠 Classified message as {intent.slug}")
        return intent


# Global service instance
_intent_service: Optional[IntentService] = None


def get_intent_service() -> IntentService:
    """Get or create intent service instance."""
    global _intent_service
    if _intent_service is None:
        _intent_service = IntentService()
    return _intent_service

"""
app/services/telegram_service.py

Purpose: Telegram message sending

- Sends text messages via the Telegram Bot API
- Used for replies and for seller purchase notifications
"""

import httpx
from typing import Any, Dict, Optional
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class TelegramService:
    """Service for sending messages via the Telegram Bot API"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.bot_token = settings.TELEGRAM_BOT_TOKEN
        self.base_url = f"{settings.TELEGRAM_API_URL}/bot{self.bot_token}"
        self._client = client

    async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=payload)

        async with httpx.AsyncClient(timeout=settings.COLLABORATOR_TIMEOUT_SECONDS) as client:
            return await client.post(url, json=payload)

    async def send_message(self, chat_id: str, message: str) -> Dict[str, Any]:
        """
        Sends a Markdown text message.

        Args:
            chat_id: Recipient chat id
            message: Message text

        Returns:
            {
                "success": True/False,
                "message_id": 123,
                "error": "Optional error message"
            }
        """
        try:
            url = f"{self.base_url}/sendMessage"
            payload = {
                "chat_id": chat_id,
                "text": message,
                "parse_mode": "Markdown"
            }

            logger.info(f"📤 Sending Telegram message to {chat_id}")

            response = await self._post(url, payload)

            if response.status_code == 200:
                result = response.json().get("result", {})
                logger.info(f"✅ Message sent: id={result.get('message_id')}")

                return {
                    "success": True,
                    "message_id": result.get("message_id")
                }
            else:
                logger.error(f"❌ Telegram API error: {response.status_code} - {response.text[:200]}")

                return {
                    "success": False,
                    "error": f"Telegram API error: {response.status_code}"
                }

        except httpx.TimeoutException:
            logger.error("Telegram API timeout")
            return {
                "success": False,
                "error": "Telegram API timeout"
            }
        except httpx.HTTPError as e:
            logger.error(f"Error sending Telegram message: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e)
            }

    def is_configured(self) -> bool:
        """Check if Telegram is properly configured"""
        return bool(self.bot_token)


# Global service instance
_telegram_service: Optional[TelegramService] = None


def get_telegram_service() -> TelegramService:
    """Get or create Telegram service instance."""
    global _telegram_service
    if _telegram_service is None:
        _telegram_service = TelegramService()
    return _telegram_service

"""
app/api/webhook.py

Purpose: Telegram webhook endpoint

- Receives updates pushed by the Telegram Bot API
- Verifies the secret token header when one is configured
- Parses and normalizes the update
- Passes control to the flow dispatcher
"""

from fastapi import APIRouter, Header
from typing import Optional

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.logging import get_logger
from app.flow.dispatcher import dispatch_message
from app.schemas.response import WebhookResponse
from app.schemas.webhook import TelegramUpdate, parse_telegram_update

logger = get_logger(__name__)
router = APIRouter()


@router.post("/webhook", response_model=WebhookResponse)
async def webhook_handler(
    update: TelegramUpdate,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    """
    Telegram webhook endpoint

    Telegram retries deliveries that do not get a 2xx answer, so processing
    failures are reported in the body, not the status code.
    """
    if settings.TELEGRAM_WEBHOOK_SECRET and x_telegram_bot_api_secret_token != settings.TELEGRAM_WEBHOOK_SECRET:
        logger.warning(f"Rejected update {update.update_id}: bad secret token")
        raise AuthenticationError("Invalid webhook secret token")

    message = parse_telegram_update(update)
    if message is None:
        logger.info(f"Ignoring update {update.update_id} without text")
        return WebhookResponse(status="ignored")

    logger.info(f"📱 Telegram update {update.update_id} from {message.chat_id}")

    result = await dispatch_message(message)
    return WebhookResponse(status=result["status"], message=result.get("error"))


@router.get("/webhook")
async def webhook_verification():
    """
    Webhook liveness endpoint
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}

"""
app/flow/dispatcher.py

Purpose: Central message dispatcher

- Receives normalized messages from the webhook
- Serializes processing per user id
- Bounds each message by the request timeout
- Sends the reply via Telegram
- Turns failures into a generic apology (details only in the logs)
"""

import asyncio
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.flow.machine import ConversationStateMachine, get_state_machine
from app.schemas.webhook import UnifiedMessage
from app.services.session_service import UserLocks, get_user_locks
from app.services.telegram_service import TelegramService, get_telegram_service
from utils.constants import GENERIC_ERROR_MESSAGE

logger = get_logger(__name__)


async def dispatch_message(
    message: UnifiedMessage,
    machine: Optional[ConversationStateMachine] = None,
    sender: Optional[TelegramService] = None,
    locks: Optional[UserLocks] = None,
    timeout: Optional[float] = None
) -> Dict[str, Any]:
    """
    Main dispatcher for incoming Telegram messages

    Args:
        message: Normalized message object
        machine: State machine (defaults to the global one)
        sender: Reply channel (defaults to the global Telegram service)
        locks: Per-user lock registry (defaults to the global one)
        timeout: Seconds allowed for producing the reply

    Returns:
        Response dict
    """
    machine = machine or get_state_machine()
    sender = sender or get_telegram_service()
    locks = locks or get_user_locks()
    timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS

    logger.info(f"📨 Dispatching message {message.message_id} from {message.chat_id}")
    logger.debug(f"   Message text: {message.text}")

    status = "success"
    error: Optional[str] = None

    async with locks.hold(message.chat_id):
        try:
            reply = await asyncio.wait_for(
                machine.advance(message.chat_id, message.text),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"❌ Processing timed out after {timeout}s for {message.chat_id}")
            reply = GENERIC_ERROR_MESSAGE
            status, error = "error", "timeout"
        except Exception as e:
            logger.error(f"❌ Dispatcher error: {e}", exc_info=True)
            reply = GENERIC_ERROR_MESSAGE
            status, error = "error", type(e).__name__

        await send_response(message.chat_id, reply, sender)

    result: Dict[str, Any] = {"status": status}
    if error:
        result["error"] = error
    return result


async def send_response(chat_id: str, reply: str, sender: TelegramService) -> None:
    """
    Sends a reply, logging (not raising) delivery failures

    Args:
        chat_id: Recipient chat id
        reply: Reply text
        sender: Reply channel
    """
    if not reply:
        logger.warning("⚠️ Empty response message")
        return

    logger.info(f"📤 Sending response to {chat_id}")
    logger.debug(f"   Message preview: {reply[:100]}...")

    result = await sender.send_message(chat_id, reply)

    if result.get("success"):
        logger.info(f"✅ Reply delivered: id={result.get('message_id', 'N/A')}")
    else:
        logger.error(f"❌ Failed to send reply: {result.get('error')}")

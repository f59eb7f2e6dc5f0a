"""
app/schemas/webhook.py

Purpose: Telegram webhook payload schemas and parsers

- Validates incoming Telegram updates
- Normalizes them into UnifiedMessage
- Ignores updates without a text message
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class TelegramUser(BaseModel):
    id: int
    first_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(BaseModel):
    id: int
    type: Optional[str] = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    chat: TelegramChat
    date: Optional[int] = None
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    update_id: int
    message: Optional[TelegramMessage] = None


class UnifiedMessage(BaseModel):
    """
    Normalized message format for internal processing
    """
    chat_id: str = Field(..., description="Telegram chat id, used as the user id")
    username: Optional[str] = Field(default=None, description="Sender's Telegram username")
    text: str = Field(..., description="Message text content")
    message_id: str = Field(..., description="Unique message identifier")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "chat_id": "123456789",
            "username": "ana_farms",
            "text": "I sell 500 g of tomatoes for $10",
            "message_id": "42"
        }
    })


def parse_telegram_update(update: TelegramUpdate) -> Optional[UnifiedMessage]:
    """
    Parses a Telegram update

    Telegram format (JSON):
    {
        "update_id": 10000,
        "message": {
            "message_id": 42,
            "from": {"id": 123456789, "first_name": "Ana", "username": "ana_farms"},
            "chat": {"id": 123456789, "type": "private"},
            "date": 1600000000,
            "text": "Hi"
        }
    }

    Returns:
        UnifiedMessage, or None for updates without text (edits, stickers, ...)
    """
    message = update.message
    if message is None or not message.text:
        return None

    return UnifiedMessage(
        chat_id=str(message.chat.id),
        username=message.from_user.username if message.from_user else None,
        text=message.text,
        message_id=str(message.message_id),
        timestamp=datetime.utcfromtimestamp(message.date) if message.date else datetime.utcnow()
    )

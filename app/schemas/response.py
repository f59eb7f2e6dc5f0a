from pydantic import BaseModel
from typing import Optional, Any

class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class WebhookResponse(BaseModel):
    """
    Acknowledgement returned to Telegram for every processed update.
    """
    status: str
    message: Optional[str] = None

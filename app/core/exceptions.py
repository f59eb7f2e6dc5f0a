"""
app/core/exceptions.py

Purpose: Application exception hierarchy

Errors raised inside message processing are turned into the generic
apology by the dispatcher; errors raised at the HTTP boundary are mapped
to an ErrorResponse by app.core.errors.
"""

from typing import Optional, Any


class Chat4BreadError(Exception):
    """
    Base exception for Chat4Bread application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ConfigurationError(Chat4BreadError):
    """Raised at startup when required settings are missing or inconsistent."""
    def __init__(self, message: str = "Invalid configuration", details: Optional[Any] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", status_code=500, details=details)


class AuthenticationError(Chat4BreadError):
    """Raised when a webhook call carries the wrong secret token."""
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)


class ExternalServiceError(Chat4BreadError):
    """
    Raised when a collaborator (intent extractor, Telegram) fails or
    answers with something unusable.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)


class ConversationStateError(Chat4BreadError):
    """
    Raised when a user document is in a state the conversation flow cannot reach.
    """
    def __init__(self, message: str = "Invalid conversation state", details: Optional[Any] = None):
        super().__init__(message, code="CONVERSATION_STATE_ERROR", status_code=500, details=details)

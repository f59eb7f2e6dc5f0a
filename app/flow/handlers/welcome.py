"""
app/flow/handlers/welcome.py

Handles: NEW – first message from an unknown chat id

- Creates the user in onboarding state with the full requirement queue
- Replies with the fixed welcome prompt
"""

from app.flow.states import ConversationState, StepResult
from app.services.user_service import UserService
from utils.constants import WELCOME_MESSAGE
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)


async def handle_welcome(users: UserService, user_id: str) -> StepResult:
    """
    Creates a new user and greets them.

    Args:
        users: Conversation store
        user_id: Chat id of the unknown sender

    Returns:
        Welcome prompt, next state ONBOARDING_NAME
    """
    with LogContext(user_id=user_id, state=ConversationState.NEW.value):
        await users.create_user(user_id)
        logger.info("Welcome message prepared for new user")

        return StepResult(WELCOME_MESSAGE, ConversationState.ONBOARDING_NAME)

"""
app/flow/machine.py

Purpose: Per-user conversation state machine

- Creates and greets unknown users
- Drives onboarding through the requirement queue
- Hands active users over to the intent router
- Checks every performed transition against the transition table
"""

from typing import Optional

from app.core.exceptions import ConversationStateError
from app.core.logging import get_logger, LogContext
from app.flow.handlers.onboarding import handle_location, handle_name, handle_type
from app.flow.handlers.welcome import handle_welcome
from app.flow.router import IntentRouter
from app.flow.states import ConversationState, StepResult, is_valid_transition
from app.services.intent_service import IntentService, get_intent_service
from app.services.user_service import UserService, get_user_service
from utils.constants import ONBOARDING_COMPLETE_MESSAGE

logger = get_logger(__name__)


ONBOARDING_HANDLERS = {
    ConversationState.ONBOARDING_NAME: handle_name,
    ConversationState.ONBOARDING_LOCATION: handle_location,
    ConversationState.ONBOARDING_TYPE: handle_type,
}


class ConversationStateMachine:
    """
    Turns one inbound message into one reply.

    Callers must not run two advance() calls for the same user id at once;
    the dispatcher serializes them.
    """

    def __init__(
        self,
        users: Optional[UserService] = None,
        extractor: Optional[IntentService] = None,
        router: Optional[IntentRouter] = None
    ):
        self.users = users or get_user_service()
        self.extractor = extractor or get_intent_service()
        self.router = router or IntentRouter()

    async def advance(self, user_id: str, text: str) -> str:
        """
        Processes a message from a user.

        Args:
            user_id: Chat id of the sender
            text: Raw message text

        Returns:
            Reply text

        Raises:
            ExternalServiceError: If a collaborator fails
            ConversationStateError: If the stored state is unreachable
        """
        user = await self.users.get_user(user_id)

        if user is None:
            result = await handle_welcome(self.users, user_id)
            self._check_transition(user_id, ConversationState.NEW, result)
            return result.reply

        if user.is_onboarding:
            intent = await self.extractor.classify(text)

            if not user.requirements:
                # Queue already drained: finish onboarding
                with LogContext(user_id=user_id):
                    logger.info("Onboarding queue empty, closing onboarding")
                    await self.users.reset_state(user_id)
                return ONBOARDING_COMPLETE_MESSAGE

            state = user.state
            handler = ONBOARDING_HANDLERS.get(state)
            if handler is None:
                raise ConversationStateError(
                    f"No onboarding step for state {state.value}",
                    details={"user_id": user_id}
                )

            result = await handler(self.users, user, intent)
            self._check_transition(user_id, state, result)
            return result.reply

        intent = await self.extractor.classify(text)
        with LogContext(user_id=user_id, state=ConversationState.ACTIVE.value, slug=intent.slug):
            return await self.router.route(user, intent)

    @staticmethod
    def _check_transition(user_id: str, from_state: ConversationState, result: StepResult) -> None:
        if not is_valid_transition(from_state, result.next_state):
            raise ConversationStateError(
                f"Invalid state transition: {from_state.value} -> {result.next_state.value}",
                details={"user_id": user_id}
            )
        logger.info(f"🔄 {user_id}: {from_state.value} -> {result.next_state.value}")


# Global state machine instance
_state_machine: Optional[ConversationStateMachine] = None


def get_state_machine() -> ConversationStateMachine:
    """Get or create the conversation state machine."""
    global _state_machine
    if _state_machine is None:
        _state_machine = ConversationStateMachine()
    return _state_machine

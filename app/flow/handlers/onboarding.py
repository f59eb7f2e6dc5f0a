"""
app/flow/handlers/onboarding.py

Handles: STEPS 1-3 – name, location, role

- Each step accepts only its own intent with complete slots
- Success persists the answer and advances the requirement queue
- Failure re-prompts without touching the user document
"""

from app.flow.states import (
    ConversationState,
    StepResult,
    UserRole,
    get_progress_message,
)
from app.models.intent import Intent, IntentSlug
from app.models.user import User
from app.services.user_service import UserService
from utils import constants
from utils.validation_utils import escape_markdown
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)


def _retry(message: str, state: ConversationState) -> StepResult:
    progress = get_progress_message(state)
    reply = f"{message}\n\n{progress}" if progress else message
    return StepResult(reply, state)


async def handle_name(users: UserService, user: User, intent: Intent) -> StepResult:
    """
    STEP 1: stores the user's name.

    Requires slug get_name and a non-empty person name.
    """
    state = ConversationState.ONBOARDING_NAME
    with LogContext(user_id=user.user_id, state=state.value, slug=intent.slug):
        name = (intent.person_name or "").strip()

        if intent.known_slug != IntentSlug.GET_NAME or not name:
            logger.info("Name step not satisfied, asking again")
            return _retry(constants.ASK_NAME_RETRY_MESSAGE, state)

        await users.set_name(user.user_id, name)
        await users.pop_requirement(user.user_id)

        logger.info("Name collected")
        return StepResult(
            constants.ASK_LOCATION_MESSAGE.format(name=escape_markdown(name)),
            ConversationState.ONBOARDING_LOCATION
        )


async def handle_location(users: UserService, user: User, intent: Intent) -> StepResult:
    """
    STEP 2: stores the user's geographic point.

    Requires slug get_location with both coordinates present.
    """
    state = ConversationState.ONBOARDING_LOCATION
    with LogContext(user_id=user.user_id, state=state.value, slug=intent.slug):
        if intent.known_slug != IntentSlug.GET_LOCATION or not intent.has_location:
            logger.info("Location step not satisfied, asking again")
            return _retry(constants.ASK_LOCATION_RETRY_MESSAGE, state)

        await users.set_location(user.user_id, intent.latitude, intent.longitude)
        await users.pop_requirement(user.user_id)

        logger.info("Location collected")
        address = intent.address or f"{intent.latitude:.4f}, {intent.longitude:.4f}"
        return StepResult(
            constants.ASK_TYPE_MESSAGE.format(address=escape_markdown(address)),
            ConversationState.ONBOARDING_TYPE
        )


_ROLE_SLUGS = {
    IntentSlug.GET_TYPE_FARMER: UserRole.FARMER,
    IntentSlug.GET_TYPE_BUYER: UserRole.CONSUMER,
}


async def handle_type(users: UserService, user: User, intent: Intent) -> StepResult:
    """
    STEP 3: stores the user's role and completes onboarding.

    Requires slug get_type_farmer or get_type_buyer. Clears the whole queue
    and the onboarding action at once.
    """
    state = ConversationState.ONBOARDING_TYPE
    with LogContext(user_id=user.user_id, state=state.value, slug=intent.slug):
        role = _ROLE_SLUGS.get(intent.known_slug)

        if role is None:
            logger.info("Role step not satisfied, asking again")
            return _retry(constants.ASK_TYPE_RETRY_MESSAGE, state)

        await users.set_role(user.user_id, role)
        await users.reset_state(user.user_id)

        logger.info(f"Onboarding complete as {role.value}")
        message = (
            constants.WELCOME_FARMER_MESSAGE
            if role == UserRole.FARMER
            else constants.WELCOME_CONSUMER_MESSAGE
        )
        return StepResult(message, ConversationState.ACTIVE)

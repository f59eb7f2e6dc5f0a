"""
app/flow/states.py

Purpose: Defines all conversation states

- Enums for the stored user fields (action, requirement queue, role)
- Derived conversation state (NEW, ONBOARDING_*, ACTIVE)
- State transition validation
- Metadata for each state (step number, display name)
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence
from dataclasses import dataclass

from app.core.exceptions import ConversationStateError


class UserAction(str, Enum):
    """Value of the stored ``action`` field."""

    NONE = ""
    ONBOARDING = "onboarding"


class OnboardingRequirement(str, Enum):
    """Entries of the stored ``requirements`` queue, consumed front-to-back."""

    NAME = "name"
    LOCATION = "location"
    TYPE = "type"


class UserRole(str, Enum):
    """Value of the stored ``kind`` field. Fixed once onboarding completes."""

    FARMER = "farmer"
    CONSUMER = "consumer"


# Queue every new user starts with
INITIAL_REQUIREMENTS: List[OnboardingRequirement] = [
    OnboardingRequirement.NAME,
    OnboardingRequirement.LOCATION,
    OnboardingRequirement.TYPE,
]


class ConversationState(str, Enum):
    """
    Defines all possible states in the onboarding conversation flow.
    Derived from the stored ``action`` and ``requirements`` fields.
    """

    NEW = "NEW"
    ONBOARDING_NAME = "ONBOARDING_NAME"
    ONBOARDING_LOCATION = "ONBOARDING_LOCATION"
    ONBOARDING_TYPE = "ONBOARDING_TYPE"
    ACTIVE = "ACTIVE"


@dataclass
class StateMetadata:
    """
    Metadata associated with each conversation state.
    """
    name: ConversationState
    display_name: str
    step_number: Optional[int] = None  # For progress tracking
    total_steps: int = 3  # Onboarding steps


STATE_METADATA: Dict[ConversationState, StateMetadata] = {
    ConversationState.NEW: StateMetadata(
        name=ConversationState.NEW,
        display_name="New",
        step_number=0
    ),
    ConversationState.ONBOARDING_NAME: StateMetadata(
        name=ConversationState.ONBOARDING_NAME,
        display_name="Your name",
        step_number=1
    ),
    ConversationState.ONBOARDING_LOCATION: StateMetadata(
        name=ConversationState.ONBOARDING_LOCATION,
        display_name="Your location",
        step_number=2
    ),
    ConversationState.ONBOARDING_TYPE: StateMetadata(
        name=ConversationState.ONBOARDING_TYPE,
        display_name="Farmer or consumer",
        step_number=3
    ),
    ConversationState.ACTIVE: StateMetadata(
        name=ConversationState.ACTIVE,
        display_name="Active"
    ),
}


# Valid state transitions - failed steps loop on themselves
STATE_TRANSITIONS: Dict[ConversationState, List[ConversationState]] = {
    ConversationState.NEW: [
        ConversationState.ONBOARDING_NAME,
    ],
    ConversationState.ONBOARDING_NAME: [
        ConversationState.ONBOARDING_LOCATION,
        ConversationState.ONBOARDING_NAME,  # Retry on unusable input
    ],
    ConversationState.ONBOARDING_LOCATION: [
        ConversationState.ONBOARDING_TYPE,
        ConversationState.ONBOARDING_LOCATION,
    ],
    ConversationState.ONBOARDING_TYPE: [
        ConversationState.ACTIVE,
        ConversationState.ONBOARDING_TYPE,
    ],
    ConversationState.ACTIVE: [
        ConversationState.ACTIVE,
    ],
}


_REQUIREMENT_STATES: Dict[OnboardingRequirement, ConversationState] = {
    OnboardingRequirement.NAME: ConversationState.ONBOARDING_NAME,
    OnboardingRequirement.LOCATION: ConversationState.ONBOARDING_LOCATION,
    OnboardingRequirement.TYPE: ConversationState.ONBOARDING_TYPE,
}


def state_for(action: str, requirements: Sequence[str]) -> ConversationState:
    """
    Derives the conversation state from the stored user fields.

    An onboarding user with an empty queue is already complete and is
    reported as ACTIVE.

    Raises:
        ConversationStateError: If the queue front is not a known requirement
    """
    if action != UserAction.ONBOARDING.value or not requirements:
        return ConversationState.ACTIVE
    try:
        return _REQUIREMENT_STATES[OnboardingRequirement(requirements[0])]
    except ValueError:
        raise ConversationStateError(
            f"Unknown onboarding requirement: {requirements[0]!r}",
            details={"requirements": list(requirements)}
        )


def is_valid_transition(from_state: ConversationState, to_state: ConversationState) -> bool:
    """
    Checks if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is allowed, False otherwise
    """
    allowed_transitions = STATE_TRANSITIONS.get(from_state, [])
    return to_state in allowed_transitions


def get_state_metadata(state: ConversationState) -> StateMetadata:
    """
    Retrieves metadata for a given state.
    """
    return STATE_METADATA.get(state, StateMetadata(
        name=state,
        display_name=state.value,
    ))


def get_progress_message(state: ConversationState) -> str:
    """
    Generates a progress message for the current state.

    Returns:
        Progress message (e.g., "Step 2 of 3")
    """
    metadata = get_state_metadata(state)
    if metadata.step_number and metadata.step_number > 0:
        return f"📍 Step {metadata.step_number} of {metadata.total_steps}"
    return ""


class StepResult(NamedTuple):
    """Reply of a conversation step and the state the user is in afterwards."""

    reply: str
    next_state: ConversationState

"""
app/models/user.py

Purpose: User document model

- Telegram chat id as the stable recipient identifier
- Display name, GeoJSON location and marketplace role
- Onboarding action and requirement queue
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.flow.states import (
    ConversationState,
    INITIAL_REQUIREMENTS,
    UserAction,
    UserRole,
    state_for,
)


class GeoPoint(BaseModel):
    """GeoJSON point. MongoDB expects coordinates as [longitude, latitude]."""

    type: str = "Point"
    coordinates: List[float]

    @classmethod
    def from_lat_lng(cls, lat: float, lng: float) -> "GeoPoint":
        return cls(coordinates=[lng, lat])

    @property
    def lat(self) -> float:
        return self.coordinates[1]

    @property
    def lng(self) -> float:
        return self.coordinates[0]


class User(BaseModel):
    """
    A chat participant.

    ``distance`` is only populated on documents returned by a $geoNear query.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[Any] = Field(default=None, alias="_id")
    user_id: str
    name: Optional[str] = None
    location: Optional[GeoPoint] = None
    kind: Optional[UserRole] = None
    action: str = UserAction.NONE.value
    requirements: List[str] = Field(default_factory=list)
    distance: Optional[float] = None
    created_at: Optional[datetime] = None
    last_interaction: Optional[datetime] = None

    @property
    def is_onboarding(self) -> bool:
        return self.action == UserAction.ONBOARDING.value

    @property
    def is_farmer(self) -> bool:
        return self.kind == UserRole.FARMER

    @property
    def state(self) -> ConversationState:
        return state_for(self.action, self.requirements)

    @property
    def display_name(self) -> str:
        return self.name or "friend"


def new_user_document(user_id: str) -> dict:
    """Document inserted for an unknown user id."""
    now = datetime.utcnow()
    return {
        "user_id": user_id,
        "name": None,
        "location": None,
        "kind": None,
        "action": UserAction.ONBOARDING.value,
        "requirements": [r.value for r in INITIAL_REQUIREMENTS],
        "created_at": now,
        "last_interaction": now,
    }

"""
app/services/user_service.py

Purpose: User data management

- Create and look up users by chat id
- Persist onboarding answers (name, location, role)
- Pop the onboarding requirement queue and reset state
- Geospatial nearest-user query
"""

from datetime import datetime
from typing import Any, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError

from app.db.mongo import get_users_collection
from app.flow.states import UserAction, UserRole
from app.models.user import GeoPoint, User, new_user_document
from app.core.logging import get_logger, LogContext

logger = get_logger(__name__)


class UserService:
    """Conversation store backed by the users collection."""

    def __init__(self, collection: Optional[AsyncIOMotorCollection] = None):
        self.collection = collection

    def _get_collection(self) -> AsyncIOMotorCollection:
        if self.collection is None:
            self.collection = get_users_collection()
        return self.collection

    async def get_user(self, user_id: str) -> Optional[User]:
        """
        Retrieves a user by chat id.

        Returns:
            User or None if not found
        """
        document = await self._get_collection().find_one({"user_id": user_id})
        if document is None:
            return None
        return User.model_validate(document)

    async def get_user_by_object_id(self, object_id: Any) -> Optional[User]:
        """Retrieves a user by its document _id (offers reference sellers this way)."""
        document = await self._get_collection().find_one({"_id": object_id})
        if document is None:
            return None
        return User.model_validate(document)

    async def create_user(self, user_id: str) -> User:
        """
        Creates a user in onboarding state with the full requirement queue.

        If another request created the same user first, that user is returned.
        """
        with LogContext(user_id=user_id):
            users = self._get_collection()
            document = new_user_document(user_id)

            try:
                result = await users.insert_one(document)
                document["_id"] = result.inserted_id
                logger.info("New user created successfully")
            except DuplicateKeyError:
                logger.warning("User already exists, loading it instead")
                existing = await users.find_one({"user_id": user_id})
                if existing is None:
                    raise
                document = existing

            return User.model_validate(document)

    async def _set_fields(self, user_id: str, fields: dict) -> bool:
        result = await self._get_collection().update_one(
            {"user_id": user_id},
            {"$set": {**fields, "last_interaction": datetime.utcnow()}}
        )
        return result.modified_count > 0

    async def set_name(self, user_id: str, name: str) -> bool:
        with LogContext(user_id=user_id):
            success = await self._set_fields(user_id, {"name": name})
            logger.info("Name updated" if success else "Name update changed nothing")
            return success

    async def set_location(self, user_id: str, lat: float, lng: float) -> bool:
        with LogContext(user_id=user_id):
            point = GeoPoint.from_lat_lng(lat, lng)
            success = await self._set_fields(user_id, {"location": point.model_dump()})
            logger.info("Location updated" if success else "Location update changed nothing")
            return success

    async def set_role(self, user_id: str, role: UserRole) -> bool:
        with LogContext(user_id=user_id):
            success = await self._set_fields(user_id, {"kind": role.value})
            logger.info(f"Role set to {role.value}")
            return success

    async def pop_requirement(self, user_id: str) -> bool:
        """Removes the front of the onboarding requirement queue."""
        result = await self._get_collection().update_one(
            {"user_id": user_id},
            {
                "$pop": {"requirements": -1},
                "$set": {"last_interaction": datetime.utcnow()}
            }
        )
        return result.modified_count > 0

    async def reset_state(self, user_id: str) -> bool:
        """Clears the action and the requirement queue (onboarding complete)."""
        with LogContext(user_id=user_id):
            success = await self._set_fields(
                user_id,
                {"action": UserAction.NONE.value, "requirements": []}
            )
            logger.info("User state reset")
            return success

    async def find_near(self, lat: float, lng: float, radius: float) -> List[User]:
        """
        Finds users within radius metres of a point, nearest first.

        Each returned user has ``distance`` set in metres.
        """
        pipeline = [
            {
                "$geoNear": {
                    "near": GeoPoint.from_lat_lng(lat, lng).model_dump(),
                    "minDistance": 0,
                    "maxDistance": radius,
                    "distanceField": "distance",
                    "spherical": True,
                }
            }
        ]
        cursor = self._get_collection().aggregate(pipeline)
        return [User.model_validate(document) async for document in cursor]


# Global service instance
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Get or create user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service

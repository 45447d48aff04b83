# crud/user.py
import logging
from typing import List, Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from errors import Conflict
from models.user import User
from schemas.user import UserCreate
from utils.dates import utcnow
from utils.security import hash_password

logger = logging.getLogger(__name__)


def to_object_id(value) -> Optional[ObjectId]:
    """ObjectId for a client-supplied id, or None when it cannot be one."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class UserCRUD:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    def _convert_objectids_to_strings(self, data: dict) -> dict:
        if not data:
            return data

        converted = data.copy()

        if '_id' in converted and converted['_id']:
            converted['id'] = str(converted['_id'])
            del converted['_id']

        return converted

    def _to_model(self, user_data: Optional[dict]) -> Optional[User]:
        if not user_data:
            return None
        return User(**self._convert_objectids_to_strings(user_data))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        user_data = await self.db.users.find_one({"email": email.lower()})
        return self._to_model(user_data)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        user_data = await self.db.users.find_one({"username": username})
        return self._to_model(user_data)

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        user_data = await self.db.users.find_one({"_id": oid})
        return self._to_model(user_data)

    async def create_user(self, user_data: UserCreate) -> User:
        user_dict = {
            "username": user_data.username,
            "email": user_data.email.lower(),
            "password": hash_password(user_data.password),
            "role": user_data.role,
            "createdAt": utcnow(),
        }

        try:
            result = await self.db.users.insert_one(user_dict)
        except DuplicateKeyError:
            # Lost a race against a concurrent registration
            raise Conflict("Username atau email sudah digunakan")

        created_user = await self.db.users.find_one({"_id": result.inserted_id})
        logger.info("User registered: %s (%s)", user_data.username, user_data.role)
        return self._to_model(created_user)

    async def get_users(self) -> List[User]:
        users_data = await self.db.users.find().to_list(length=None)
        return [self._to_model(user_data) for user_data in users_data]

    async def get_users_by_ids(self, user_ids: List[str]) -> List[User]:
        oids = [to_object_id(user_id) for user_id in user_ids]
        oids = [oid for oid in oids if oid is not None]
        if not oids:
            return []
        users_data = await self.db.users.find({"_id": {"$in": oids}}).to_list(length=None)
        return [self._to_model(user_data) for user_data in users_data]

    async def all_exist(self, user_ids: List[str]) -> bool:
        """True when every id (duplicates collapsed) names an existing user."""
        unique_ids = set(user_ids)
        if any(to_object_id(user_id) is None for user_id in unique_ids):
            return False
        found = await self.get_users_by_ids(list(unique_ids))
        return len(found) == len(unique_ids)

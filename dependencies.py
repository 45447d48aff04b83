# dependencies.py
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from crud.assignment import AssignmentCRUD
from crud.user import UserCRUD
from database import get_database
from services.authorization import AuthorizationGate
from services.media import MediaService

# Optional: requests without a bearer token fall back to the plain id contract
bearer_scheme = HTTPBearer(auto_error=False)


async def get_user_crud(db=Depends(get_database)) -> UserCRUD:
    return UserCRUD(db)


async def get_assignment_crud(db=Depends(get_database)) -> AssignmentCRUD:
    return AssignmentCRUD(db)


async def get_gate(
    users: UserCRUD = Depends(get_user_crud),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> AuthorizationGate:
    return AuthorizationGate(users, token=credentials.credentials if credentials else None)


def get_media_service() -> MediaService:
    return MediaService()


def get_requester_id(
    userId: Optional[str] = Query(None),
    adminId: Optional[str] = Query(None)
) -> Optional[str]:
    """The acting user named in the query string, as userId or adminId."""
    return userId or adminId

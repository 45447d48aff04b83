# routers/users.py
import logging
from fastapi import APIRouter, Depends, status
from typing import List, Optional

from crud.user import UserCRUD
from dependencies import get_user_crud, get_gate
from errors import Conflict, InvalidCredentials, NotFound
from schemas.user import UserCreate, UserLogin, UserOut, AuthResponse
from services.authorization import AuthorizationGate
from utils.security import verify_password, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    crud: UserCRUD = Depends(get_user_crud)
):
    """Register a new account; role defaults to "user"."""
    if await crud.get_user_by_email(user_data.email):
        raise Conflict("User dengan email ini sudah terdaftar")

    if await crud.get_user_by_username(user_data.username):
        raise Conflict("Username sudah digunakan")

    user = await crud.create_user(user_data)
    return AuthResponse(
        message="Registrasi berhasil",
        user_id=user.id,
        username=user.username,
        role=user.role
    )


# Login endpoint - No authentication required
@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    crud: UserCRUD = Depends(get_user_crud)
):
    logger.info("Login attempt for %s", credentials.username)

    user = await crud.get_user_by_username(credentials.username)
    if not user or not verify_password(credentials.password, user.password):
        raise InvalidCredentials()

    return AuthResponse(
        message="Login berhasil",
        user_id=user.id,
        username=user.username,
        role=user.role,
        access_token=create_access_token(user.id, user.role)
    )


@router.get("/admin/all", response_model=List[UserOut])
async def get_all_users(
    adminId: Optional[str] = None,
    gate: AuthorizationGate = Depends(get_gate),
    crud: UserCRUD = Depends(get_user_crud)
):
    """List every account without password hashes (admin only)."""
    await gate.require_admin(
        adminId,
        missing_message="Admin ID diperlukan sebagai query parameter"
    )
    users = await crud.get_users()
    return [UserOut(id=user.id, **user.model_dump(exclude={"id", "password"})) for user in users]


@router.get("/{userId}", response_model=UserOut)
async def get_user(
    userId: str,
    crud: UserCRUD = Depends(get_user_crud)
):
    user = await crud.get_user_by_id(userId)
    if not user:
        raise NotFound("User tidak ditemukan")
    return UserOut(id=user.id, **user.model_dump(exclude={"id", "password"}))

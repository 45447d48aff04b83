# services/authorization.py
"""Resolve the acting identity of a request and check its role.

Every request names its actor with a plain ``userId``/``adminId`` parameter.
Checks run in a fixed order: a missing id is a ``BadRequest``, an id that
does not resolve is a ``NotFound``, and a role mismatch is ``Forbidden``.

When the client also presents the signed token issued at login, its subject
must name the same user, otherwise the request is ``Forbidden``.
"""
import logging
from typing import Optional

from crud.user import UserCRUD
from errors import BadRequest, Forbidden, NotFound
from models.user import RoleEnum, User
from utils.security import verify_token

logger = logging.getLogger(__name__)

MISSING_ID_MESSAGE = "User ID diperlukan"
USER_NOT_FOUND_MESSAGE = "User tidak ditemukan"
ADMIN_ONLY_MESSAGE = "Akses ditolak. Hanya admin yang diizinkan."


class AuthorizationGate:
    def __init__(self, users: UserCRUD, token: Optional[str] = None):
        self.users = users
        self.token = token

    async def resolve(self, requester_id: Optional[str],
                      missing_message: str = MISSING_ID_MESSAGE) -> User:
        if not requester_id:
            raise BadRequest(missing_message)

        user = await self.users.get_user_by_id(requester_id)
        if user is None:
            raise NotFound(USER_NOT_FOUND_MESSAGE)

        self._check_token(user)
        return user

    async def require_role(self, requester_id: Optional[str], role: RoleEnum,
                           forbidden_message: str = ADMIN_ONLY_MESSAGE,
                           missing_message: str = MISSING_ID_MESSAGE) -> User:
        user = await self.resolve(requester_id, missing_message=missing_message)
        if user.role != role:
            logger.info("Role check failed: %s is %s, needs %s", user.id, user.role, role.value)
            raise Forbidden(forbidden_message)
        return user

    async def require_admin(self, requester_id: Optional[str], **messages) -> User:
        return await self.require_role(requester_id, RoleEnum.admin, **messages)

    def _check_token(self, user: User):
        if self.token is None:
            return
        payload = verify_token(self.token)
        if not payload or payload.get("sub") != user.id:
            logger.warning("Rejected identity token for user %s", user.id)
            raise Forbidden("Token tidak valid untuk user ini")

# models/user.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
import enum

class RoleEnum(str, enum.Enum):
    admin = "admin"
    user = "user"

class User(BaseModel):
    id: Optional[str] = None
    username: str
    email: str
    password: str  # bcrypt hash, never the plain text
    role: RoleEnum = RoleEnum.user
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.admin

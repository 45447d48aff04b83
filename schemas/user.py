# schemas/user.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from models.user import RoleEnum
from utils.dates import as_utc


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    role: RoleEnum = RoleEnum.user

    model_config = ConfigDict(use_enum_values=True)

    # Before the length check, so a blank username is rejected
    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, value):
        # The registration form may send an empty role
        return value or RoleEnum.user


class UserLogin(BaseModel):
    username: str
    password: str

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value


class UserOut(BaseModel):
    id: str = Field(alias="_id")
    username: str
    email: str
    role: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel
    )

    @field_serializer("created_at", when_used="json")
    def serialize_created_at(self, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class AuthResponse(BaseModel):
    message: str
    user_id: str
    username: str
    role: str
    access_token: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel
    )

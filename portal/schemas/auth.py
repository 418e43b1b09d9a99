from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from portal.models.user import UserRole
from portal.schemas.base import either_case


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    role: UserRole
    company_id: Optional[int] = Field(default=None, validation_alias=either_case("company_id"))
    company_name: Optional[str] = Field(default=None, validation_alias=either_case("company_name"))


class SessionToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginData(BaseModel):
    user: UserResponse
    session: SessionToken


class TokenData(BaseModel):
    user_id: int
    role: Optional[str] = None
    company_id: Optional[int] = None


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1, validation_alias=either_case("current_password"))
    new_password: str = Field(min_length=6, validation_alias=either_case("new_password"))

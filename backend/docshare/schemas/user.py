from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    name: str = ""
    email: EmailStr
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    email: EmailStr
    password: str
    token: str

class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr | None = None
    current_password: str = Field(alias="currentPassword")
    new_password: str = Field(alias="newPassword")

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: EmailStr
    role: str
    created_at: datetime
    is_active: bool

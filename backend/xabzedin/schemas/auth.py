import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str = Field(min_length=1, max_length=255)
    referral_code: str = Field(min_length=1, max_length=16)


class SignUpResponse(BaseModel):
    user_id: uuid.UUID
    email: str
    email_confirmation_required: bool


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class SessionUser(BaseModel):
    id: uuid.UUID
    email: str
    email_confirmed_at: datetime | None
    last_sign_in_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SessionProfile(BaseModel):
    id: uuid.UUID
    full_name: str | None
    role: str | None
    avatar_url: str | None

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    user: SessionUser
    profile: SessionProfile


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    session: SessionResponse


class TokenRequest(BaseModel):
    token: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    password: str
    password_confirm: str


class MessageResponse(BaseModel):
    message: str

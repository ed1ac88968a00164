from datetime import datetime

from pydantic import BaseModel, Field


class ReferralCodeCheck(BaseModel):
    code: str = Field(min_length=1, max_length=16)


class ReferralCodeValidity(BaseModel):
    code: str
    valid: bool


class GeneratedReferralCode(BaseModel):
    code: str
    rights_remaining: int


class UsedReferralCode(BaseModel):
    code: str
    used_at: datetime | None

    model_config = {"from_attributes": True}


class ReferredUserResponse(BaseModel):
    full_name: str | None
    email: str | None
    joined_at: datetime | None
    used_at: datetime | None

    model_config = {"from_attributes": True}


class ReferralSummaryResponse(BaseModel):
    active_code: str | None
    rights_remaining: int
    has_rights: bool
    referrer_name: str | None
    referred_users: list[ReferredUserResponse]
    used_codes: list[UsedReferralCode]

    model_config = {"from_attributes": True}

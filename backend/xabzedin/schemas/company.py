import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _required_name(value: str | None) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    sector: str | None = None
    location: str | None = None
    website: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return _required_name(value)


class CompanyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    sector: str | None = None
    location: str | None = None
    website: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str | None) -> str:
        return _required_name(value)


class CompanyResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    logo_url: str | None
    sector: str | None
    location: str | None
    website: str | None
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CompanySummary(BaseModel):
    id: uuid.UUID
    name: str
    logo_url: str | None
    sector: str | None
    location: str | None

    model_config = {"from_attributes": True}

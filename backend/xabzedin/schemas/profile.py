import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from xabzedin.models.profile import UserRole


def normalize_skills(skills: list[str]) -> list[str]:
    """Trim skills, drop blanks and keep the first occurrence of duplicates."""
    seen = []
    for skill in skills:
        skill = skill.strip()
        if skill and skill not in seen:
            seen.append(skill)
    return seen


class ExperienceCreate(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    position: str = Field(min_length=1, max_length=255)
    start_date: date | None = None
    end_date: date | None = None
    is_current: bool = False
    description: str | None = None

    @field_validator("company_name", "position")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def _check_dates(self):
        if self.is_current:
            self.end_date = None
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.description is not None and not self.description.strip():
            self.description = None
        return self


class ExperienceResponse(BaseModel):
    id: uuid.UUID
    company_name: str
    position: str
    start_date: date | None
    end_date: date | None
    is_current: bool
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class EducationCreate(BaseModel):
    school_name: str = Field(min_length=1, max_length=255)
    degree: str | None = None
    field_of_study: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None

    @field_validator("school_name")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("degree", "field_of_study", "description")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EducationResponse(BaseModel):
    id: uuid.UUID
    school_name: str
    degree: str | None
    field_of_study: str | None
    start_date: date | None
    end_date: date | None
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    full_name: str | None = None
    bio: str | None = None
    phone: str | None = None
    linkedin_url: str | None = None
    community_reference: str | None = None
    skills: list[str] | None = None
    experience_summary: str | None = None
    education_summary: str | None = None

    @field_validator("skills")
    @classmethod
    def _normalize_skills(cls, value: list[str] | None) -> list[str]:
        return normalize_skills(value or [])


class RoleSelection(BaseModel):
    role: UserRole


class RoleSelectionResponse(BaseModel):
    role: str
    redirect_to: str


class ProfileResponse(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str | None
    role: str | None
    avatar_url: str | None
    bio: str | None
    linkedin_url: str | None
    phone: str | None
    community_reference: str | None
    skills: list[str]
    experience_summary: str | None
    education_summary: str | None
    referral_code_rights: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("skills", mode="before")
    @classmethod
    def _skills_default(cls, value):
        return value or []


class SeekerSummary(BaseModel):
    """Applicant fields shown to employers next to an application."""

    id: uuid.UUID
    email: str
    full_name: str | None
    avatar_url: str | None
    phone: str | None
    linkedin_url: str | None
    skills: list[str]

    model_config = {"from_attributes": True}

    @field_validator("skills", mode="before")
    @classmethod
    def _skills_default(cls, value):
        return value or []


class DigitalCVResponse(BaseModel):
    profile: ProfileResponse
    experiences: list[ExperienceResponse]
    education: list[EducationResponse]

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from xabzedin.models.job import JobType
from xabzedin.schemas.company import CompanyResponse, CompanySummary


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _required_text(value: str | None) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)
    type: JobType = JobType.ONSITE
    location: str | None = None
    salary_range: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    duration_days: int = 30

    @field_validator("title", "description")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("location", "salary_range", "contact_name", "contact_phone", "contact_email")
    @classmethod
    def _optional(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = Field(default=None, min_length=1)
    type: JobType | None = None
    location: str | None = None
    salary_range: str | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None

    # Omitted fields stay as they are; an explicit null is rejected
    @field_validator("title", "description")
    @classmethod
    def _strip_required(cls, value: str | None) -> str:
        return _required_text(value)

    @field_validator("type")
    @classmethod
    def _type_not_null(cls, value: JobType | None) -> JobType:
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("location", "salary_range", "contact_name", "contact_phone", "contact_email")
    @classmethod
    def _optional(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class RepublishRequest(BaseModel):
    duration_days: int = 30


class JobResponse(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    title: str
    description: str
    type: str | None
    location: str | None
    salary_range: str | None
    contact_name: str | None
    contact_phone: str | None
    contact_email: str | None
    expires_at: datetime | None
    is_active: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime
    days_remaining: int | None = None

    model_config = {"from_attributes": True}


class JobWithCompanyResponse(JobResponse):
    company: CompanySummary | None = None


class JobDetailResponse(JobWithCompanyResponse):
    has_applied: bool = False
    application_id: uuid.UUID | None = None


class EmployerJobResponse(JobResponse):
    status: str
    application_count: int = 0


class JobListResponse(BaseModel):
    jobs: list[JobWithCompanyResponse]
    total: int
    page: int
    page_size: int


class EmployerJobListResponse(BaseModel):
    jobs: list[EmployerJobResponse]
    total: int


class CompanyPageResponse(CompanyResponse):
    jobs: list[JobResponse] = []

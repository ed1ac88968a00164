import uuid
from datetime import datetime

from pydantic import BaseModel

from xabzedin.models.application import ApplicationStatus
from xabzedin.schemas.company import CompanySummary
from xabzedin.schemas.profile import SeekerSummary


class ApplicationCreate(BaseModel):
    cover_letter: str | None = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationResponse(BaseModel):
    id: uuid.UUID
    job_id: uuid.UUID
    seeker_id: uuid.UUID
    status: str
    cover_letter: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ApplicationJobSummary(BaseModel):
    id: uuid.UUID
    title: str
    type: str | None
    location: str | None
    company: CompanySummary | None = None

    model_config = {"from_attributes": True}


class SeekerApplicationResponse(ApplicationResponse):
    job: ApplicationJobSummary | None = None


class EmployerApplicationResponse(ApplicationResponse):
    job_title: str | None = None
    seeker: SeekerSummary | None = None


class SeekerApplicationListResponse(BaseModel):
    applications: list[SeekerApplicationResponse]
    total: int


class EmployerApplicationListResponse(BaseModel):
    applications: list[EmployerApplicationResponse]
    total: int

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from xabzedin.api.deps import get_employer_company, require_role
from xabzedin.database import get_db
from xabzedin.errors import NotFoundError
from xabzedin.models.application import Application
from xabzedin.models.company import Company
from xabzedin.models.job import Job
from xabzedin.models.profile import Profile, UserRole
from xabzedin.schemas.application import (
    ApplicationResponse,
    ApplicationStatusUpdate,
    EmployerApplicationResponse,
    SeekerApplicationListResponse,
    SeekerApplicationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/applications", tags=["applications"])


def employer_application_response(application: Application, job_title: str | None) -> EmployerApplicationResponse:
    """Build the employer view. ``application.seeker`` must already be loaded."""
    ar = EmployerApplicationResponse.model_validate(application)
    ar.job_title = job_title
    return ar


@router.get("/me", response_model=SeekerApplicationListResponse)
async def list_my_applications(
    seeker: Profile = Depends(require_role(UserRole.SEEKER)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Application)
        .options(selectinload(Application.job).selectinload(Job.company))
        .where(Application.seeker_id == seeker.id)
        .order_by(Application.created_at.desc())
    )
    applications = [SeekerApplicationResponse.model_validate(a) for a in result.scalars().all()]
    return SeekerApplicationListResponse(applications=applications, total=len(applications))


@router.delete("/{application_id}", status_code=204)
async def withdraw_application(
    application_id: uuid.UUID,
    seeker: Profile = Depends(require_role(UserRole.SEEKER)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Application).where(Application.id == application_id, Application.seeker_id == seeker.id)
    )
    application = result.scalar_one_or_none()
    if not application:
        raise NotFoundError("application_not_found")
    await db.delete(application)
    await db.flush()
    logger.info("Application %s withdrawn", application_id)


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: uuid.UUID,
    data: ApplicationStatusUpdate,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Application)
        .join(Job, Job.id == Application.job_id)
        .where(Application.id == application_id, Job.company_id == company.id)
    )
    application = result.scalar_one_or_none()
    if not application:
        raise NotFoundError("application_not_found")

    application.status = data.status.value
    await db.flush()
    await db.refresh(application)
    logger.info("Application %s marked %s", application.id, data.status)
    return ApplicationResponse.model_validate(application)

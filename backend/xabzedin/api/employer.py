import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import func as sa_func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from xabzedin.api.applications import employer_application_response
from xabzedin.api.deps import get_employer_company
from xabzedin.api.jobs import get_owned_job
from xabzedin.database import get_db
from xabzedin.models.application import Application
from xabzedin.models.company import Company
from xabzedin.models.job import Job
from xabzedin.schemas.application import EmployerApplicationListResponse
from xabzedin.schemas.job import EmployerJobListResponse, EmployerJobResponse, JobResponse
from xabzedin.services.jobs import days_remaining, job_status, utcnow

router = APIRouter(prefix="/api/employer", tags=["employer"])


def _employer_job_response(job: Job, application_count: int, now: datetime) -> EmployerJobResponse:
    base = JobResponse.model_validate(job).model_dump(exclude={"days_remaining"})
    return EmployerJobResponse(
        **base,
        days_remaining=days_remaining(job.expires_at, now),
        status=job_status(job, now).value,
        application_count=application_count,
    )


async def _application_counts(db: AsyncSession, job_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
    if not job_ids:
        return {}
    result = await db.execute(
        select(Application.job_id, sa_func.count(Application.id))
        .where(Application.job_id.in_(job_ids))
        .group_by(Application.job_id)
    )
    return {job_id: count for job_id, count in result.all()}


@router.get("/jobs", response_model=EmployerJobListResponse)
async def list_company_jobs(
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Job).where(Job.company_id == company.id).order_by(Job.created_at.desc())
    )
    jobs = result.scalars().all()
    counts = await _application_counts(db, [job.id for job in jobs])

    now = utcnow()
    responses = [_employer_job_response(job, counts.get(job.id, 0), now) for job in jobs]
    return EmployerJobListResponse(jobs=responses, total=len(responses))


@router.get("/jobs/{job_id}", response_model=EmployerJobResponse)
async def get_company_job(
    job_id: uuid.UUID,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    job = await get_owned_job(db, job_id, company)
    counts = await _application_counts(db, [job.id])
    return _employer_job_response(job, counts.get(job.id, 0), utcnow())


@router.get("/applications", response_model=EmployerApplicationListResponse)
async def list_received_applications(
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Application)
        .join(Job, Job.id == Application.job_id)
        .options(selectinload(Application.seeker), selectinload(Application.job))
        .where(Job.company_id == company.id)
        .order_by(Application.created_at.desc())
    )
    applications = [employer_application_response(a, a.job.title) for a in result.scalars().all()]
    return EmployerApplicationListResponse(applications=applications, total=len(applications))

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, func as sa_func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from xabzedin.api.applications import employer_application_response
from xabzedin.api.deps import get_employer_company, get_optional_profile, require_role
from xabzedin.database import get_db
from xabzedin.errors import ConflictError, NotFoundError
from xabzedin.models.application import Application
from xabzedin.models.company import Company
from xabzedin.models.job import Job, JobType
from xabzedin.models.profile import Profile, UserRole
from xabzedin.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    EmployerApplicationListResponse,
)
from xabzedin.schemas.job import (
    JobCreate,
    JobDetailResponse,
    JobListResponse,
    JobResponse,
    JobUpdate,
    JobWithCompanyResponse,
    RepublishRequest,
)
from xabzedin.services.jobs import (
    apply_job_filters,
    compute_expires_at,
    days_remaining,
    republish,
    utcnow,
    visible_jobs_query,
)
from xabzedin.services.notifier import build_new_application_email
from xabzedin.tasks.email_tasks import send_email_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


async def get_owned_job(db: AsyncSession, job_id: uuid.UUID, company: Company) -> Job:
    """The job if it belongs to ``company``; other companies' jobs read as missing."""
    result = await db.execute(select(Job).where(Job.id == job_id, Job.company_id == company.id))
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError("job_not_found")
    return job


async def _get_visible_job(db: AsyncSession, job_id: uuid.UUID) -> Job:
    result = await db.execute(visible_jobs_query().where(Job.id == job_id))
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError("job_not_found")
    return job


def _job_response(job: Job) -> JobResponse:
    jr = JobResponse.model_validate(job)
    jr.days_remaining = days_remaining(job.expires_at)
    return jr


@router.get("", response_model=JobListResponse)
async def list_jobs(
    q: str | None = None,
    type: JobType | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    query = apply_job_filters(visible_jobs_query(), search=q, job_type=type)

    # Count total
    count_query = select(sa_func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Paginate
    offset = (page - 1) * page_size
    query = query.order_by(Job.created_at.desc()).offset(offset).limit(page_size)

    result = await db.execute(query)
    jobs = []
    for job in result.scalars().all():
        jr = JobWithCompanyResponse.model_validate(job)
        jr.days_remaining = days_remaining(job.expires_at)
        jobs.append(jr)

    return JobListResponse(jobs=jobs, total=total, page=page, page_size=page_size)


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    fields = data.model_dump(exclude={"duration_days"})
    job = Job(
        company_id=company.id,
        expires_at=compute_expires_at(data.duration_days),
        is_active=True,
        is_archived=False,
        **fields,
    )
    db.add(job)
    await db.flush()
    await db.refresh(job)
    logger.info("Job %s posted by company %s", job.id, company.id)
    return _job_response(job)


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(
    job_id: uuid.UUID,
    viewer: Profile | None = Depends(get_optional_profile),
    db: AsyncSession = Depends(get_db),
):
    job = await _get_visible_job(db, job_id)
    jr = JobDetailResponse.model_validate(job)
    jr.days_remaining = days_remaining(job.expires_at)

    if viewer is not None and viewer.role == UserRole.SEEKER:
        app_result = await db.execute(
            select(Application.id).where(Application.job_id == job.id, Application.seeker_id == viewer.id)
        )
        application_id = app_result.scalar_one_or_none()
        jr.has_applied = application_id is not None
        jr.application_id = application_id

    return jr


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: uuid.UUID,
    data: JobUpdate,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    job = await get_owned_job(db, job_id, company)
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(job, field, value)
    job.updated_at = utcnow()
    await db.flush()
    await db.refresh(job)
    return _job_response(job)


@router.post("/{job_id}/republish", response_model=JobResponse)
async def republish_job(
    job_id: uuid.UUID,
    data: RepublishRequest,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    job = await get_owned_job(db, job_id, company)
    republish(job, data.duration_days)
    await db.flush()
    await db.refresh(job)
    logger.info("Job %s republished for %d days", job.id, data.duration_days)
    return _job_response(job)


@router.delete("/{job_id}", status_code=204)
async def delete_job(
    job_id: uuid.UUID,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    job = await get_owned_job(db, job_id, company)
    await db.execute(delete(Application).where(Application.job_id == job.id))
    await db.delete(job)
    await db.flush()
    logger.info("Job %s deleted", job_id)


@router.post("/{job_id}/applications", response_model=ApplicationResponse, status_code=201)
async def apply_to_job(
    job_id: uuid.UUID,
    data: ApplicationCreate,
    seeker: Profile = Depends(require_role(UserRole.SEEKER)),
    db: AsyncSession = Depends(get_db),
):
    job = await _get_visible_job(db, job_id)

    existing = await db.execute(
        select(Application.id).where(Application.job_id == job.id, Application.seeker_id == seeker.id)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("already_applied")

    cover_letter = (data.cover_letter or "").strip() or None
    application = Application(job_id=job.id, seeker_id=seeker.id, cover_letter=cover_letter)
    db.add(application)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("already_applied")
    await db.refresh(application)

    owner_result = await db.execute(select(Profile.email).where(Profile.id == job.company.owner_id))
    owner_email = owner_result.scalar_one_or_none()
    job_title = job.title
    seeker_name = seeker.full_name or seeker.email
    response = ApplicationResponse.model_validate(application)

    # Commit before queueing so the worker sees the application
    await db.commit()

    if owner_email:
        subject, html = build_new_application_email(str(job.id), job_title, seeker_name)
        send_email_task.delay(owner_email, subject, html)

    logger.info("Seeker %s applied to job %s", seeker.id, job.id)
    return response


@router.get("/{job_id}/applications", response_model=EmployerApplicationListResponse)
async def list_job_applications(
    job_id: uuid.UUID,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    job = await get_owned_job(db, job_id, company)
    result = await db.execute(
        select(Application)
        .options(selectinload(Application.seeker))
        .where(Application.job_id == job.id)
        .order_by(Application.created_at.desc())
    )
    applications = [employer_application_response(a, job.title) for a in result.scalars().all()]
    return EmployerApplicationListResponse(applications=applications, total=len(applications))

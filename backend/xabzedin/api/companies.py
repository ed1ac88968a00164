import uuid

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.api.deps import get_employer_company, require_role
from xabzedin.database import get_db
from xabzedin.errors import ConflictError, NotFoundError
from xabzedin.models.company import Company
from xabzedin.models.job import Job
from xabzedin.models.profile import Profile, UserRole
from xabzedin.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate
from xabzedin.schemas.job import CompanyPageResponse, JobResponse
from xabzedin.services.jobs import days_remaining, visible_jobs_query
from xabzedin.services.storage import store_image

router = APIRouter(prefix="/api/companies", tags=["companies"])


@router.post("", response_model=CompanyResponse, status_code=201)
async def create_company(
    data: CompanyCreate,
    profile: Profile = Depends(require_role(UserRole.EMPLOYER)),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(select(Company.id).where(Company.owner_id == profile.id))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("company_exists")

    company = Company(owner_id=profile.id, **data.model_dump())
    db.add(company)
    await db.flush()
    await db.refresh(company)
    return CompanyResponse.model_validate(company)


@router.get("/me", response_model=CompanyResponse)
async def get_my_company(company: Company = Depends(get_employer_company)):
    return CompanyResponse.model_validate(company)


@router.put("/me", response_model=CompanyResponse)
async def update_my_company(
    data: CompanyUpdate,
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(company, field, value)
    await db.flush()
    await db.refresh(company)
    return CompanyResponse.model_validate(company)


@router.post("/me/logo", response_model=CompanyResponse)
async def upload_logo(
    file: UploadFile = File(...),
    company: Company = Depends(get_employer_company),
    db: AsyncSession = Depends(get_db),
):
    company.logo_url = await store_image(str(company.owner_id), "company-logo", file)
    await db.flush()
    await db.refresh(company)
    return CompanyResponse.model_validate(company)


@router.get("/{company_id}", response_model=CompanyPageResponse)
async def get_company_page(company_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    company = await db.get(Company, company_id)
    if not company:
        raise NotFoundError("company_not_found")

    result = await db.execute(
        visible_jobs_query().where(Job.company_id == company_id).order_by(Job.created_at.desc())
    )
    jobs = []
    for job in result.scalars().all():
        jr = JobResponse.model_validate(job)
        jr.days_remaining = days_remaining(job.expires_at)
        jobs.append(jr)

    return CompanyPageResponse(**CompanyResponse.model_validate(company).model_dump(), jobs=jobs)

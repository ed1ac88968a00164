from fastapi import APIRouter, Depends
from sqlalchemy import func as sa_func, select
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.api.deps import get_current_profile
from xabzedin.api.profiles import dashboard_path
from xabzedin.database import get_db
from xabzedin.models.application import Application
from xabzedin.models.company import Company
from xabzedin.models.job import Job
from xabzedin.models.profile import Education, Experience, Profile, UserRole
from xabzedin.schemas.dashboard import DashboardResponse

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(select(sa_func.count()).select_from(query.subquery()))
    return result.scalar() or 0


@router.get("", response_model=DashboardResponse)
async def get_dashboard(profile: Profile = Depends(get_current_profile), db: AsyncSession = Depends(get_db)):
    if profile.role is None:
        return DashboardResponse(role=None, needs_role_selection=True)

    response = DashboardResponse(role=profile.role, redirect_to=dashboard_path(profile.role))

    if profile.role == UserRole.SEEKER:
        response.applications_count = await _count(db, select(Application.id).where(Application.seeker_id == profile.id))
        response.experiences_count = await _count(db, select(Experience.id).where(Experience.profile_id == profile.id))
        response.education_count = await _count(db, select(Education.id).where(Education.profile_id == profile.id))
        return response

    company_result = await db.execute(select(Company.id).where(Company.owner_id == profile.id))
    company_id = company_result.scalar_one_or_none()
    response.has_company = company_id is not None
    if company_id is None:
        response.jobs_count = 0
        response.received_applications_count = 0
        return response

    response.jobs_count = await _count(db, select(Job.id).where(Job.company_id == company_id))
    response.received_applications_count = await _count(
        db,
        select(Application.id).join(Job, Job.id == Application.job_id).where(Job.company_id == company_id),
    )
    return response

import uuid

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.api.deps import get_current_profile
from xabzedin.database import get_db
from xabzedin.errors import ConflictError, NotFoundError
from xabzedin.models.profile import Education, Experience, Profile, UserRole
from xabzedin.schemas.profile import (
    DigitalCVResponse,
    EducationCreate,
    EducationResponse,
    ExperienceCreate,
    ExperienceResponse,
    ProfileResponse,
    ProfileUpdate,
    RoleSelection,
    RoleSelectionResponse,
)
from xabzedin.services.jobs import utcnow
from xabzedin.services.storage import store_image

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

DASHBOARD_PATHS = {
    UserRole.SEEKER: "/dashboard/seeker",
    UserRole.EMPLOYER: "/dashboard/employer",
}


def dashboard_path(role: str | None) -> str | None:
    if role is None:
        return None
    return DASHBOARD_PATHS.get(UserRole(role))


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: Profile = Depends(get_current_profile)):
    return ProfileResponse.model_validate(profile)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(profile, field, value)
    profile.updated_at = utcnow()
    await db.flush()
    await db.refresh(profile)
    return ProfileResponse.model_validate(profile)


@router.put("/me/role", response_model=RoleSelectionResponse)
async def select_role(
    data: RoleSelection,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    if profile.role is not None and profile.role != data.role:
        raise ConflictError("role_already_set")

    if profile.role is None:
        profile.role = data.role.value
        profile.updated_at = utcnow()
        await db.flush()

    return RoleSelectionResponse(role=data.role.value, redirect_to=DASHBOARD_PATHS[data.role])


@router.post("/me/avatar", response_model=ProfileResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    profile.avatar_url = await store_image(str(profile.id), "avatar", file)
    profile.updated_at = utcnow()
    await db.flush()
    await db.refresh(profile)
    return ProfileResponse.model_validate(profile)


@router.post("/me/experiences", response_model=ExperienceResponse, status_code=201)
async def add_experience(
    data: ExperienceCreate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    experience = Experience(profile_id=profile.id, **data.model_dump())
    db.add(experience)
    await db.flush()
    await db.refresh(experience)
    return ExperienceResponse.model_validate(experience)


@router.delete("/me/experiences/{experience_id}", status_code=204)
async def delete_experience(
    experience_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Experience).where(Experience.id == experience_id, Experience.profile_id == profile.id)
    )
    experience = result.scalar_one_or_none()
    if not experience:
        raise NotFoundError("experience_not_found")
    await db.delete(experience)
    await db.flush()


@router.post("/me/education", response_model=EducationResponse, status_code=201)
async def add_education(
    data: EducationCreate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    education = Education(profile_id=profile.id, **data.model_dump())
    db.add(education)
    await db.flush()
    await db.refresh(education)
    return EducationResponse.model_validate(education)


@router.delete("/me/education/{education_id}", status_code=204)
async def delete_education(
    education_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Education).where(Education.id == education_id, Education.profile_id == profile.id)
    )
    education = result.scalar_one_or_none()
    if not education:
        raise NotFoundError("education_not_found")
    await db.delete(education)
    await db.flush()


@router.get("/{profile_id}", response_model=DigitalCVResponse, dependencies=[Depends(get_current_profile)])
async def get_digital_cv(
    profile_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    profile = await db.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("profile_not_found")

    # Undated entries go last
    exp_result = await db.execute(
        select(Experience)
        .where(Experience.profile_id == profile_id)
        .order_by(Experience.start_date.desc().nulls_last(), Experience.created_at.desc())
    )
    edu_result = await db.execute(
        select(Education)
        .where(Education.profile_id == profile_id)
        .order_by(Education.start_date.desc().nulls_last(), Education.created_at.desc())
    )

    return DigitalCVResponse(
        profile=ProfileResponse.model_validate(profile),
        experiences=[ExperienceResponse.model_validate(e) for e in exp_result.scalars().all()],
        education=[EducationResponse.model_validate(e) for e in edu_result.scalars().all()],
    )

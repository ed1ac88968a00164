from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.api.deps import get_current_profile
from xabzedin.database import get_db
from xabzedin.models.profile import Profile
from xabzedin.schemas.referral import (
    GeneratedReferralCode,
    ReferralCodeCheck,
    ReferralCodeValidity,
    ReferralSummaryResponse,
    ReferredUserResponse,
    UsedReferralCode,
)
from xabzedin.services.referrals import (
    generate_referral_code,
    get_referral_summary,
    is_code_valid,
    normalize_code,
)

router = APIRouter(prefix="/api/referrals", tags=["referrals"])


@router.get("/me", response_model=ReferralSummaryResponse)
async def get_my_referrals(profile: Profile = Depends(get_current_profile), db: AsyncSession = Depends(get_db)):
    summary = await get_referral_summary(db, profile)
    return ReferralSummaryResponse(
        active_code=summary.active_code,
        rights_remaining=summary.rights_remaining,
        has_rights=summary.has_rights,
        referrer_name=summary.referrer_name,
        referred_users=[ReferredUserResponse.model_validate(u) for u in summary.referred_users],
        used_codes=[UsedReferralCode.model_validate(c) for c in summary.used_codes],
    )


@router.post("/generate", response_model=GeneratedReferralCode, status_code=201)
async def generate_code(profile: Profile = Depends(get_current_profile), db: AsyncSession = Depends(get_db)):
    referral = await generate_referral_code(db, profile)
    return GeneratedReferralCode(code=referral.code, rights_remaining=profile.referral_code_rights)


@router.post("/validate", response_model=ReferralCodeValidity)
async def validate_code(data: ReferralCodeCheck, db: AsyncSession = Depends(get_db)):
    """Public pre-check for the sign-up form. Does not consume the code."""
    return ReferralCodeValidity(code=normalize_code(data.code), valid=await is_code_valid(db, data.code))

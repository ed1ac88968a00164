"""Referral-code lifecycle: generation, single-use consumption and ownership.

Registration is invite-only. A code is consumed inside the same transaction
that creates the account, through a guarded UPDATE, so concurrent sign-ups
racing for one code cannot both succeed.
"""

import logging
import secrets
import string
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.errors import ConflictError, ForbiddenError, ValidationFailed
from xabzedin.models.profile import Profile
from xabzedin.models.referral import ReferralCode

logger = logging.getLogger(__name__)

CODE_LENGTH = 8
CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_GENERATION_ATTEMPTS = 5


def normalize_code(code: str) -> str:
    return code.strip().upper()


def generate_code_string(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def find_unused_code(db: AsyncSession, code: str) -> ReferralCode | None:
    normalized = normalize_code(code)
    if not normalized:
        return None
    result = await db.execute(
        select(ReferralCode).where(ReferralCode.code == normalized, ReferralCode.is_used == False)  # noqa: E712
    )
    return result.scalar_one_or_none()


async def is_code_valid(db: AsyncSession, code: str) -> bool:
    return await find_unused_code(db, code) is not None


async def consume_referral_code(db: AsyncSession, code: str, user_id: uuid.UUID) -> uuid.UUID | None:
    """Mark ``code`` used by ``user_id`` and return the code's owner id.

    Raises ValidationFailed("invalid_referral_code") when the code does not
    exist or was already used. The caller owns the transaction.
    """
    normalized = normalize_code(code)
    result = await db.execute(
        update(ReferralCode)
        .where(ReferralCode.code == normalized, ReferralCode.is_used == False)  # noqa: E712
        .values(is_used=True, used_by_id=user_id, used_at=datetime.now(timezone.utc))
        .returning(ReferralCode.id, ReferralCode.owner_id)
        .execution_options(synchronize_session=False)
    )
    row = result.first()
    if row is None:
        raise ValidationFailed("invalid_referral_code")
    logger.info("Referral code %s consumed by %s", normalized, user_id)
    return row.owner_id


async def get_active_code(db: AsyncSession, owner_id: uuid.UUID) -> ReferralCode | None:
    result = await db.execute(
        select(ReferralCode)
        .where(ReferralCode.owner_id == owner_id, ReferralCode.is_used == False)  # noqa: E712
        .order_by(ReferralCode.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _insert_unique_code(db: AsyncSession, owner_id: uuid.UUID | None) -> ReferralCode:
    for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
        candidate = generate_code_string()
        existing = await db.execute(select(ReferralCode.id).where(ReferralCode.code == candidate))
        if existing.scalar_one_or_none() is not None:
            logger.warning("Referral code collision on attempt %d", attempt)
            continue
        referral = ReferralCode(code=candidate, owner_id=owner_id, is_used=False)
        db.add(referral)
        await db.flush()
        return referral
    raise ConflictError("referral_code_generation_failed")


async def generate_referral_code(db: AsyncSession, profile: Profile) -> ReferralCode:
    """Spend one of the profile's rights on a fresh code."""
    if (profile.referral_code_rights or 0) <= 0:
        raise ForbiddenError("no_referral_rights")

    if await get_active_code(db, profile.id) is not None:
        raise ConflictError("active_referral_code_exists")

    referral = await _insert_unique_code(db, profile.id)

    # Guarded decrement: a concurrent request cannot spend the same right twice
    result = await db.execute(
        update(Profile)
        .where(Profile.id == profile.id, Profile.referral_code_rights > 0)
        .values(referral_code_rights=Profile.referral_code_rights - 1)
        .returning(Profile.referral_code_rights)
        .execution_options(synchronize_session=False)
    )
    remaining = result.scalar_one_or_none()
    if remaining is None:
        raise ForbiddenError("no_referral_rights")
    profile.referral_code_rights = remaining

    await db.refresh(referral)
    logger.info("Referral code generated for %s (%d rights left)", profile.id, remaining)
    return referral


async def issue_referral_codes(db: AsyncSession, count: int, owner_id: uuid.UUID | None = None) -> list[ReferralCode]:
    """Administrative bootstrap: create ``count`` codes without spending rights."""
    codes = []
    for _ in range(count):
        codes.append(await _insert_unique_code(db, owner_id))
    logger.info("Issued %d referral codes (owner=%s)", len(codes), owner_id)
    return codes


@dataclass
class ReferredUser:
    full_name: str | None
    email: str | None
    joined_at: datetime | None
    used_at: datetime | None


@dataclass
class ReferralSummary:
    active_code: str | None
    rights_remaining: int
    referrer_name: str | None
    referred_users: list[ReferredUser] = field(default_factory=list)
    used_codes: list[ReferralCode] = field(default_factory=list)

    @property
    def has_rights(self) -> bool:
        return self.rights_remaining > 0


async def get_referral_summary(db: AsyncSession, profile: Profile) -> ReferralSummary:
    result = await db.execute(
        select(ReferralCode)
        .where(ReferralCode.owner_id == profile.id)
        .order_by(ReferralCode.created_at.desc())
    )
    codes = result.scalars().all()

    active = next((c for c in codes if not c.is_used), None)
    used_codes = [c for c in codes if c.is_used]

    referrer_name = None
    if profile.referred_by:
        ref_result = await db.execute(
            select(Profile.full_name, Profile.email).where(Profile.id == profile.referred_by)
        )
        referrer = ref_result.first()
        if referrer:
            referrer_name = referrer.full_name or referrer.email

    referred_result = await db.execute(
        select(ReferralCode.used_at, Profile.full_name, Profile.email, Profile.created_at)
        .join(Profile, Profile.id == ReferralCode.used_by_id, isouter=True)
        .where(ReferralCode.owner_id == profile.id, ReferralCode.is_used == True)  # noqa: E712
        .order_by(ReferralCode.used_at.desc())
    )
    referred_users = [
        ReferredUser(full_name=row.full_name, email=row.email, joined_at=row.created_at, used_at=row.used_at)
        for row in referred_result.all()
    ]

    return ReferralSummary(
        active_code=active.code if active else None,
        rights_remaining=profile.referral_code_rights or 0,
        referrer_name=referrer_name,
        referred_users=referred_users,
        used_codes=used_codes,
    )

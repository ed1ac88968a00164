import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.config import settings
from xabzedin.errors import AuthenticationError, ConflictError, ForbiddenError, ValidationFailed
from xabzedin.models.profile import Profile
from xabzedin.models.user import AuthToken, TokenPurpose, User
from xabzedin.security import generate_token, hash_password, hash_token, verify_password
from xabzedin.services.referrals import consume_referral_code

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_password_strength(password: str):
    if len(password) < settings.password_min_length:
        raise ValidationFailed("password_too_short", min_length=settings.password_min_length)


def token_ttl(purpose: TokenPurpose) -> timedelta:
    if purpose == TokenPurpose.SESSION:
        return timedelta(hours=settings.session_ttl_hours)
    if purpose == TokenPurpose.PASSWORD_RESET:
        return timedelta(minutes=settings.password_reset_ttl_minutes)
    return timedelta(hours=settings.email_confirmation_ttl_hours)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == normalize_email(email)))
    return result.scalar_one_or_none()


async def issue_token(db: AsyncSession, user: User, purpose: TokenPurpose) -> tuple[str, AuthToken]:
    """Create a token row and return the raw token alongside it."""
    raw = generate_token()
    token = AuthToken(
        user_id=user.id,
        purpose=purpose.value,
        token_hash=hash_token(raw),
        expires_at=datetime.now(timezone.utc) + token_ttl(purpose),
    )
    db.add(token)
    await db.flush()
    return raw, token


async def find_valid_token(db: AsyncSession, raw: str, purpose: TokenPurpose) -> AuthToken | None:
    result = await db.execute(
        select(AuthToken).where(
            AuthToken.token_hash == hash_token(raw),
            AuthToken.purpose == purpose,
            AuthToken.used_at.is_(None),
            AuthToken.expires_at > datetime.now(timezone.utc),
        )
    )
    return result.scalar_one_or_none()


async def consume_token(db: AsyncSession, raw: str, purpose: TokenPurpose) -> AuthToken:
    """Spend a single-use token, or raise invalid_token."""
    now = datetime.now(timezone.utc)
    result = await db.execute(
        update(AuthToken)
        .where(
            AuthToken.token_hash == hash_token(raw),
            AuthToken.purpose == purpose,
            AuthToken.used_at.is_(None),
            AuthToken.expires_at > now,
        )
        .values(used_at=now)
        .returning(AuthToken.id, AuthToken.user_id)
        .execution_options(synchronize_session=False)
    )
    row = result.first()
    if row is None:
        raise ValidationFailed("invalid_token")
    token = await db.get(AuthToken, row.id)
    return token


async def revoke_sessions(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        update(AuthToken)
        .where(
            AuthToken.user_id == user_id,
            AuthToken.purpose == TokenPurpose.SESSION,
            AuthToken.used_at.is_(None),
        )
        .values(used_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def sign_up(db: AsyncSession, email: str, password: str, full_name: str, referral_code: str) -> tuple[User, Profile]:
    """Create an account and its profile, consuming the referral code.

    Everything happens in the caller's transaction: when any step fails the
    account, the profile and the code consumption roll back together.
    """
    check_password_strength(password)
    email = normalize_email(email)

    if await get_user_by_email(db, email) is not None:
        raise ConflictError("email_taken")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    await db.flush()

    profile = Profile(
        id=user.id,
        email=email,
        full_name=full_name.strip() or None,
        skills=[],
        referral_code_rights=settings.default_referral_code_rights,
    )
    db.add(profile)
    await db.flush()

    profile.referred_by = await consume_referral_code(db, referral_code, user.id)
    await db.flush()
    await db.refresh(user)
    await db.refresh(profile)

    logger.info("Account created for %s", email)
    return user, profile


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("invalid_credentials")
    if settings.require_email_confirmation and user.email_confirmed_at is None:
        raise ForbiddenError("email_not_confirmed")
    user.last_sign_in_at = datetime.now(timezone.utc)
    return user


async def confirm_email(db: AsyncSession, raw_token: str) -> User:
    token = await consume_token(db, raw_token, TokenPurpose.EMAIL_CONFIRMATION)
    user = await db.get(User, token.user_id)
    if user.email_confirmed_at is None:
        user.email_confirmed_at = datetime.now(timezone.utc)
    await db.flush()
    return user


async def reset_password(db: AsyncSession, raw_token: str, password: str, password_confirm: str) -> User:
    if password != password_confirm:
        raise ValidationFailed("passwords_do_not_match")
    check_password_strength(password)

    token = await consume_token(db, raw_token, TokenPurpose.PASSWORD_RESET)
    user = await db.get(User, token.user_id)
    user.password_hash = hash_password(password)
    # Reaching the reset link proves ownership of the address
    if user.email_confirmed_at is None:
        user.email_confirmed_at = datetime.now(timezone.utc)
    revoked = await revoke_sessions(db, user.id)
    await db.flush()
    logger.info("Password reset for %s, %d sessions revoked", user.email, revoked)
    return user

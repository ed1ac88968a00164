from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.api.deps import get_current_profile, get_current_token
from xabzedin.config import settings
from xabzedin.database import get_db
from xabzedin.models.profile import Profile
from xabzedin.models.user import AuthToken, TokenPurpose, User
from xabzedin.schemas.auth import (
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    SessionProfile,
    SessionResponse,
    SessionUser,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    TokenRequest,
    TokenResponse,
)
from xabzedin.services import auth as auth_service
from xabzedin.services.notifier import build_confirmation_email, build_password_reset_email
from xabzedin.tasks.email_tasks import send_email_task

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_response(user: User, profile: Profile) -> SessionResponse:
    return SessionResponse(
        user=SessionUser.model_validate(user),
        profile=SessionProfile.model_validate(profile),
    )


@router.post("/sign-up", response_model=SignUpResponse, status_code=201)
async def sign_up(data: SignUpRequest, db: AsyncSession = Depends(get_db)):
    user, profile = await auth_service.sign_up(
        db,
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        referral_code=data.referral_code,
    )

    raw_token, _ = await auth_service.issue_token(db, user, TokenPurpose.EMAIL_CONFIRMATION)
    await db.commit()

    subject, html = build_confirmation_email(raw_token)
    send_email_task.delay(user.email, subject, html)

    return SignUpResponse(
        user_id=user.id,
        email=user.email,
        email_confirmation_required=settings.require_email_confirmation,
    )


@router.post("/sign-in", response_model=TokenResponse)
async def sign_in(data: SignInRequest, db: AsyncSession = Depends(get_db)):
    user = await auth_service.authenticate(db, data.email, data.password)
    raw_token, token = await auth_service.issue_token(db, user, TokenPurpose.SESSION)
    profile = await db.get(Profile, user.id)
    await db.commit()

    return TokenResponse(
        access_token=raw_token,
        expires_at=token.expires_at,
        session=_session_response(user, profile),
    )


@router.post("/sign-out", status_code=204)
async def sign_out(token: AuthToken = Depends(get_current_token), db: AsyncSession = Depends(get_db)):
    token.used_at = datetime.now(timezone.utc)
    await db.commit()


@router.get("/session", response_model=SessionResponse)
async def get_session(profile: Profile = Depends(get_current_profile), db: AsyncSession = Depends(get_db)):
    user = await db.get(User, profile.id)
    return _session_response(user, profile)


@router.post("/confirm-email", response_model=MessageResponse)
async def confirm_email(data: TokenRequest, db: AsyncSession = Depends(get_db)):
    user = await auth_service.confirm_email(db, data.token)
    await db.commit()
    return MessageResponse(message=f"Email confirmed for {user.email}")


@router.post("/password-reset", response_model=MessageResponse, status_code=202)
async def request_password_reset(data: PasswordResetRequest, db: AsyncSession = Depends(get_db)):
    # Same answer whether or not the address is registered
    user = await auth_service.get_user_by_email(db, data.email)
    if user is not None:
        raw_token, _ = await auth_service.issue_token(db, user, TokenPurpose.PASSWORD_RESET)
        await db.commit()
        subject, html = build_password_reset_email(raw_token)
        send_email_task.delay(user.email, subject, html)
    return MessageResponse(message="If the address is registered, a reset link has been sent")


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(data: PasswordResetConfirm, db: AsyncSession = Depends(get_db)):
    await auth_service.reset_password(db, data.token, data.password, data.password_confirm)
    await db.commit()
    return MessageResponse(message="Password updated")

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from xabzedin.database import get_db
from xabzedin.errors import AuthenticationError, ConflictError, ForbiddenError
from xabzedin.models.company import Company
from xabzedin.models.profile import Profile, UserRole
from xabzedin.models.user import AuthToken, TokenPurpose
from xabzedin.services.auth import find_valid_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> AuthToken:
    if credentials is None:
        raise AuthenticationError("auth_required")
    token = await find_valid_token(db, credentials.credentials, TokenPurpose.SESSION)
    if token is None:
        raise AuthenticationError("auth_required")
    return token


async def get_current_profile(
    token: AuthToken = Depends(get_current_token),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    profile = await db.get(Profile, token.user_id)
    if profile is None:
        raise AuthenticationError("auth_required")
    return profile


async def get_optional_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Profile | None:
    if credentials is None:
        return None
    token = await find_valid_token(db, credentials.credentials, TokenPurpose.SESSION)
    if token is None:
        return None
    return await db.get(Profile, token.user_id)


def require_role(role: UserRole):
    async def _check(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role != role:
            raise ForbiddenError("role_required")
        return profile

    return _check


async def get_employer_company(
    profile: Profile = Depends(require_role(UserRole.EMPLOYER)),
    db: AsyncSession = Depends(get_db),
) -> Company:
    result = await db.execute(select(Company).where(Company.owner_id == profile.id))
    company = result.scalar_one_or_none()
    if company is None:
        raise ConflictError("company_required")
    return company

"""FastAPI dependencies for authentication.

Dependencies:
  get_current_principal  → decode JWT, return the caller's identity claims
  get_current_user       → load the caller's account row (404 if none yet)
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from candidate_onboarding.auth.jwt import Principal, decode_token, principal_from_claims
from candidate_onboarding.database import get_db
from candidate_onboarding.middleware.exceptions import ResourceNotFoundError
from candidate_onboarding.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    principal = principal_from_claims(decode_token(credentials.credentials))
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


async def get_user_by_auth_id(db: AsyncSession, auth_user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.auth_user_id == auth_user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the account for the token's subject.

    Raises 404 rather than 401 when the account doesn't exist yet: the
    onboarding client treats that as "create me" and falls back to init.
    """
    user = await get_user_by_auth_id(db, principal.auth_user_id)
    if not user:
        raise ResourceNotFoundError("User", principal.auth_user_id)
    return user

"""Account endpoints.

Endpoints:
  GET   /api/v2/users/me        → caller's account (404 until registered)
  POST  /api/v2/users/register  → create the caller's account (409 if exists)
  PATCH /api/v2/users/me        → partial update, incl. onboarding state

Onboarding status is one-way once terminal: completed/skipped accounts
cannot be moved back to pending or in_progress.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from candidate_onboarding.auth.deps import (
    Principal,
    get_current_principal,
    get_current_user,
    get_user_by_auth_id,
)
from candidate_onboarding.database import get_db
from candidate_onboarding.middleware.exceptions import ConflictError
from candidate_onboarding.models.user import TERMINAL_STATUSES, OnboardingStatus, User
from candidate_onboarding.schemas.common import DataResponse
from candidate_onboarding.schemas.user import RegisterRequest, UserOut, UserUpdate
from candidate_onboarding.utils.cache import get_cached_user, invalidate_user, set_cached_user

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

async def register_user(
    db: AsyncSession,
    principal: Principal,
    email: str,
    name: str = "",
    image_url: str | None = None,
) -> User:
    """Insert the account row for a principal. Raises ConflictError on duplicates."""
    if await get_user_by_auth_id(db, principal.auth_user_id):
        raise ConflictError("User already exists", error_code="USER_EXISTS")

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("User already exists with this email", error_code="USER_EXISTS")

    user = User(
        auth_user_id=principal.auth_user_id,
        email=email,
        name=name or principal.name or "",
        image_url=image_url or principal.image_url,
        is_admin=principal.is_admin,
        onboarding_status=OnboardingStatus.PENDING,
        onboarding_step=1,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, principal.auth_user_id)
    return user


async def lock_user(db: AsyncSession, user_id: str) -> User:
    """Load the account with SELECT ... FOR UPDATE, replacing any stale copy."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


def apply_user_update(user: User, body: UserUpdate) -> None:
    data = body.model_dump(exclude_unset=True)

    new_status = data.get("onboarding_status")
    if (
        new_status is not None
        and user.onboarding_status in TERMINAL_STATUSES
        and new_status not in TERMINAL_STATUSES
    ):
        raise ConflictError(
            f"Onboarding already {user.onboarding_status.value}",
            error_code="ONBOARDING_FINISHED",
        )

    if new_status in TERMINAL_STATUSES and data.get("onboarding_completed_at") is None:
        data["onboarding_completed_at"] = datetime.utcnow()
    elif data.get("onboarding_completed_at") is not None:
        # Columns are naive UTC
        completed_at = data["onboarding_completed_at"]
        if completed_at.tzinfo is not None:
            completed_at = completed_at.astimezone(timezone.utc).replace(tzinfo=None)
        data["onboarding_completed_at"] = completed_at

    for k, v in data.items():
        setattr(user, k, v)


# ── Endpoints ────────────────────────────────────────────────

@router.get("/me", response_model=DataResponse[UserOut])
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    cached = await get_cached_user(principal.auth_user_id)
    if cached:
        return {"data": cached}

    user = await get_current_user(principal, db)
    out = UserOut.model_validate(user)
    await set_cached_user(principal.auth_user_id, out.model_dump(mode="json"))
    return {"data": out}


@router.post("/register", response_model=DataResponse[UserOut], status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    user = await register_user(db, principal, body.email, body.name, body.image_url)
    await db.commit()
    await invalidate_user(principal.auth_user_id)
    return {"data": UserOut.model_validate(user)}


@router.patch("/me", response_model=DataResponse[UserOut])
async def update_me(
    body: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # Terminal-status check must see the latest committed row
    user = await lock_user(db, user.id)
    apply_user_update(user, body)
    await db.commit()
    await db.refresh(user)
    # Invalidate only once the write is committed
    await invalidate_user(user.auth_user_id)
    return {"data": UserOut.model_validate(user)}

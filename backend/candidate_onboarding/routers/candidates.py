"""Candidate profile endpoints.

Endpoints:
  GET   /api/v2/candidates/me    → caller's own profile (404 if none)
  POST  /api/v2/candidates       → create a profile for the caller
  PATCH /api/v2/candidates/{id}  → partial update; omitted fields untouched
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from candidate_onboarding.auth.deps import get_current_user
from candidate_onboarding.database import get_db
from candidate_onboarding.middleware.exceptions import (
    ConflictError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from candidate_onboarding.models.candidate import Candidate
from candidate_onboarding.models.user import User
from candidate_onboarding.schemas.candidate import CandidateCreate, CandidateOut, CandidateUpdate
from candidate_onboarding.schemas.common import DataResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_candidate_for_user(db: AsyncSession, user_id: str) -> Candidate | None:
    result = await db.execute(select(Candidate).where(Candidate.user_id == user_id))
    return result.scalar_one_or_none()


async def create_candidate(db: AsyncSession, user: User, full_name: str, email: str) -> Candidate:
    """Create the caller's profile, or claim a recruiter-managed one by email."""
    result = await db.execute(
        select(Candidate).where(Candidate.email == email, Candidate.user_id.is_(None))
    )
    candidate = result.scalars().first()
    if candidate:
        candidate.user_id = user.id
        logger.info("User %s claimed existing candidate %s", user.id, candidate.id)
    else:
        candidate = Candidate(user_id=user.id, full_name=full_name, email=email)
        db.add(candidate)
    await db.flush()
    await db.refresh(candidate)
    return candidate


@router.get("/me", response_model=DataResponse[CandidateOut])
async def get_my_candidate(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    candidate = await get_candidate_for_user(db, user.id)
    if not candidate:
        raise ResourceNotFoundError("Candidate", f"user {user.id}")
    return {"data": CandidateOut.model_validate(candidate)}


@router.post("", response_model=DataResponse[CandidateOut], status_code=status.HTTP_201_CREATED)
async def create_my_candidate(
    body: CandidateCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.user_id and body.user_id != user.id:
        raise PermissionDeniedError("Cannot create a profile for another user")
    if await get_candidate_for_user(db, user.id):
        raise ConflictError("Candidate profile already exists", error_code="CANDIDATE_EXISTS")

    candidate = await create_candidate(db, user, body.full_name, body.email)
    return {"data": CandidateOut.model_validate(candidate)}


@router.patch("/{candidate_id}", response_model=DataResponse[CandidateOut])
async def update_candidate(
    candidate_id: str,
    body: CandidateUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Candidate).where(Candidate.id == candidate_id))
    candidate = result.scalar_one_or_none()
    if not candidate:
        raise ResourceNotFoundError("Candidate", candidate_id)
    if candidate.user_id != user.id:
        raise PermissionDeniedError("Cannot edit another user's profile")

    for k, v in body.model_dump(exclude_unset=True).items():
        setattr(candidate, k, v)
    await db.flush()
    await db.refresh(candidate)
    return {"data": CandidateOut.model_validate(candidate)}

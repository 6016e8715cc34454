"""Onboarding orchestration endpoints.

Endpoints:
  GET  /api/v2/onboarding/status → account + profile in one call
  POST /api/v2/onboarding/init   → idempotent "create account + profile"

Design:
  - init is safe to call repeatedly: existing rows are reused and
    reported via `was_existing`, so a client may retry after any failure.
  - A recruiter-managed candidate with the same email is claimed rather
    than duplicated.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from candidate_onboarding.auth.deps import Principal, get_current_principal, get_user_by_auth_id
from candidate_onboarding.database import get_db
from candidate_onboarding.routers.candidates import create_candidate, get_candidate_for_user
from candidate_onboarding.routers.users import register_user
from candidate_onboarding.schemas.candidate import CandidateOut
from candidate_onboarding.schemas.common import DataResponse
from candidate_onboarding.schemas.onboarding import (
    OnboardingInitRequest,
    OnboardingInitResult,
    OnboardingStatusOut,
)
from candidate_onboarding.schemas.user import UserOut
from candidate_onboarding.utils.cache import invalidate_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status", response_model=DataResponse[OnboardingStatusOut])
async def onboarding_status(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_by_auth_id(db, principal.auth_user_id)
    candidate = await get_candidate_for_user(db, user.id) if user else None
    return {
        "data": OnboardingStatusOut(
            user=UserOut.model_validate(user) if user else None,
            candidate=CandidateOut.model_validate(candidate) if candidate else None,
        )
    }


@router.post("/init", response_model=DataResponse[OnboardingInitResult])
async def onboarding_init(
    body: OnboardingInitRequest,
    response: Response,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    # Step 1: ensure the account exists
    user = await get_user_by_auth_id(db, principal.auth_user_id)
    user_was_existing = user is not None
    if user is None:
        # A 409 here means the email belongs to a different subject
        user = await register_user(db, principal, body.email, body.name or "", body.image_url)

    # Step 2: candidate app also needs a profile
    candidate = None
    candidate_was_existing = False
    if body.source_app == "candidate":
        candidate = await get_candidate_for_user(db, user.id)
        candidate_was_existing = candidate is not None
        if candidate is None:
            full_name = body.name or body.email.split("@")[0]
            candidate = await create_candidate(db, user, full_name, body.email)

    await db.commit()
    if not user_was_existing:
        await invalidate_user(principal.auth_user_id)

    response.status_code = status.HTTP_200_OK if user_was_existing else status.HTTP_201_CREATED
    return {
        "data": OnboardingInitResult(
            user=UserOut.model_validate(user),
            candidate=CandidateOut.model_validate(candidate) if candidate else None,
            was_existing={"user": user_was_existing, "candidate": candidate_was_existing},
        )
    }

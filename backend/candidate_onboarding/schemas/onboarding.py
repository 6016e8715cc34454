"""Pydantic schemas for candidate onboarding.

ProfileFields is the sparse record the wizard accumulates; every field is
optional and merges are shallow. OnboardingSnapshot is the resumability
blob stored on the account as `onboarding_metadata`.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr

from candidate_onboarding.schemas.candidate import CandidateOut, CandidateProfileFields
from candidate_onboarding.schemas.user import UserOut


# ── Wizard field set ────────────────────────────────────────

@dataclass(frozen=True)
class ResumeFile:
    """In-memory handle for a file the user picked. Never serialized."""
    filename: str
    content: bytes
    content_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class ProfileFields(CandidateProfileFields):
    """All wizard fields. resume_file / resume_uploaded are client-side only."""
    resume_file: ResumeFile | None = None
    resume_uploaded: bool | None = None

    model_config = {"extra": "forbid", "arbitrary_types_allowed": True}


# Fields that exist only in the client session, never on the profile record
CLIENT_ONLY_FIELDS = frozenset({"resume_file", "resume_uploaded"})

# Fields that cannot survive snapshotting
NON_SERIALIZABLE_FIELDS = frozenset({"resume_file"})


# ── Resumability snapshot ───────────────────────────────────

class OnboardingSnapshot(BaseModel):
    current_step: int
    status: str
    completed_steps: list[int]
    profile_data: dict
    started_at: datetime | None = None
    last_updated_at: datetime
    device_info: dict = {}


# ── /api/v2/onboarding ──────────────────────────────────────

class OnboardingInitRequest(BaseModel):
    email: EmailStr
    name: str | None = None
    image_url: str | None = None
    source_app: Literal["candidate", "portal"] = "candidate"


class OnboardingInitResult(BaseModel):
    user: UserOut
    candidate: CandidateOut | None = None
    was_existing: dict[str, bool]


class OnboardingStatusOut(BaseModel):
    user: UserOut | None = None
    candidate: CandidateOut | None = None

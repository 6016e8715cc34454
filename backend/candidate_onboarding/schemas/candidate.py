"""Pydantic schemas for candidate profile records.

Every profile field is optional so PATCH (partial save) works; the
server only touches the keys a client actually sent.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class CandidateProfileFields(BaseModel):
    """Profile columns a candidate can fill in during onboarding."""
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    current_title: str | None = None
    current_company: str | None = None
    bio: str | None = None
    skills: str | None = None
    years_experience: int | None = Field(default=None, ge=0, le=80)
    linkedin_url: str | None = None
    github_url: str | None = None
    portfolio_url: str | None = None
    resume_document_id: str | None = None
    desired_job_type: str | None = None
    desired_salary_min: int | None = Field(default=None, ge=0)
    desired_salary_max: int | None = Field(default=None, ge=0)
    open_to_remote: bool | None = None
    open_to_relocation: bool | None = None
    availability: str | None = None


class CandidateCreate(BaseModel):
    full_name: str
    email: EmailStr
    user_id: str | None = None


class CandidateUpdate(CandidateProfileFields):
    model_config = {"extra": "forbid"}


class CandidateOut(CandidateProfileFields):
    id: str
    user_id: str | None
    full_name: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from candidate_onboarding.models.user import OnboardingStatus


class UserOut(BaseModel):
    id: str
    auth_user_id: str
    email: str
    name: str
    image_url: str | None
    is_admin: bool
    onboarding_status: OnboardingStatus
    onboarding_step: int
    onboarding_completed_at: datetime | None
    onboarding_metadata: dict | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RegisterRequest(BaseModel):
    """Create the account row for an authenticated principal."""
    email: EmailStr
    name: str = ""
    image_url: str | None = None


class UserUpdate(BaseModel):
    """Partial account update. Omitted fields are left untouched."""
    name: str | None = None
    image_url: str | None = None
    onboarding_status: OnboardingStatus | None = None
    onboarding_step: int | None = Field(default=None, ge=1, le=6)
    onboarding_completed_at: datetime | None = None
    onboarding_metadata: dict | None = None

    model_config = {"extra": "forbid"}

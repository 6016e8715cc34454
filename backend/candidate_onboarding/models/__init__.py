"""Aggregate model imports for Alembic auto-detection."""

from candidate_onboarding.models.user import User, OnboardingStatus  # noqa: F401
from candidate_onboarding.models.candidate import Candidate  # noqa: F401
from candidate_onboarding.models.document import Document  # noqa: F401

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from candidate_onboarding.database import Base


class OnboardingStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


# Once reached, the wizard is never shown again for this account
TERMINAL_STATUSES = frozenset({OnboardingStatus.COMPLETED, OnboardingStatus.SKIPPED})


class User(Base):
    """Account record. Owns onboarding status and the resumability blob."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Subject claim issued by the external auth provider
    auth_user_id: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(String(1024))
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    onboarding_status: Mapped[OnboardingStatus] = mapped_column(
        SAEnum(
            OnboardingStatus,
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            length=20,
        ),
        default=OnboardingStatus.PENDING,
    )
    onboarding_step: Mapped[int] = mapped_column(Integer, default=1)
    onboarding_completed_at: Mapped[datetime | None] = mapped_column(DateTime)
    # Opaque resumability snapshot written by the onboarding client.
    # Last writer wins; never merged server-side.
    onboarding_metadata: Mapped[dict | None] = mapped_column(JSON, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

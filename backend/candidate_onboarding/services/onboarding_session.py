"""In-memory state for one onboarding session.

The controller is the only writer. profile_data is a sparse record that
only ever grows by shallow merge: a key missing from a later update never
erases an earlier value.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from candidate_onboarding.models.user import OnboardingStatus
from candidate_onboarding.schemas.onboarding import (
    CLIENT_ONLY_FIELDS,
    NON_SERIALIZABLE_FIELDS,
    ProfileFields,
)


class OnboardingStep(enum.IntEnum):
    CONTACT = 1
    BACKGROUND = 2
    LINKS = 3
    RESUME = 4
    PREFERENCES = 5
    COMPLETE = 6  # post-submit summary, display only


NAVIGABLE_STEPS = frozenset(range(OnboardingStep.CONTACT, OnboardingStep.COMPLETE))

# Display rule for the calling UI; the controller itself does not enforce it
SKIPPABLE_STEPS = frozenset({
    OnboardingStep.CONTACT,
    OnboardingStep.BACKGROUND,
    OnboardingStep.LINKS,
    OnboardingStep.RESUME,
})

PROFILE_FIELD_NAMES = frozenset(ProfileFields.model_fields)


def can_skip(step: int) -> bool:
    return step in SKIPPABLE_STEPS


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple, set)):
        return len(value) == 0
    return False


def populated_fields(profile_data: dict[str, Any]) -> dict[str, Any]:
    """Profile-record fields the user actually filled in.

    Client-only markers are dropped, as are None / blank values, so a
    submit never overwrites stored values with empties. False and 0 are
    real answers and are kept.
    """
    return {
        k: v
        for k, v in profile_data.items()
        if k not in CLIENT_ONLY_FIELDS and not _is_empty(v)
    }


def serializable_profile_data(profile_data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in profile_data.items() if k not in NON_SERIALIZABLE_FIELDS}


@dataclass
class OnboardingSession:
    current_step: int = OnboardingStep.CONTACT
    status: OnboardingStatus = OnboardingStatus.PENDING
    profile_data: dict[str, Any] = field(default_factory=dict)
    candidate_id: str | None = None
    submitting: bool = False
    error: str | None = None
    # Resume upload has its own inline state; it never touches `error`
    uploading: bool = False
    upload_error: str | None = None
    started_at: datetime | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "candidate_id":
            current = getattr(self, "candidate_id", None)
            if current is not None and value != current:
                raise AttributeError("candidate_id cannot change once set")
        super().__setattr__(name, value)

    @property
    def is_finished(self) -> bool:
        return self.status in (OnboardingStatus.COMPLETED, OnboardingStatus.SKIPPED)

    def merge_fields(self, partial: dict[str, Any]) -> None:
        """Shallow-merge validated fields into profile_data (later wins)."""
        validated = ProfileFields.model_validate(partial)
        updates = {k: getattr(validated, k) for k in validated.model_fields_set}
        self.profile_data = {**self.profile_data, **updates}

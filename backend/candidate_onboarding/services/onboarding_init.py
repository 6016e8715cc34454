"""Resolve the starting state of an onboarding session.

Order of operations:
  1. Fetch the caller's profile; any failure means "not created yet".
  2. Fall back to the idempotent init call (account + profile).
  3. Fetch the account record, which owns onboarding status.
  4. Finished (completed/skipped) or admin accounts → hard navigation out.
  5. Otherwise seed the session: values of a pre-existing profile first,
     then the saved snapshot on top, since in-progress answers are newer.
     Saved values that no longer validate are dropped field by field.

Any failure along the way is terminal for this attempt and is returned as
an error outcome offering retry (full reload) or sign-out.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import ValidationError

from candidate_onboarding.auth.jwt import Principal
from candidate_onboarding.config import settings
from candidate_onboarding.models.user import TERMINAL_STATUSES, OnboardingStatus
from candidate_onboarding.schemas.onboarding import (
    CLIENT_ONLY_FIELDS,
    NON_SERIALIZABLE_FIELDS,
    ProfileFields,
)
from candidate_onboarding.services.onboarding_session import (
    NAVIGABLE_STEPS,
    PROFILE_FIELD_NAMES,
    OnboardingSession,
    OnboardingStep,
)
from candidate_onboarding.services.profile_backend import (
    ProfileBackend,
    ProfileBackendError,
    TokenProvider,
)

logger = logging.getLogger(__name__)

Navigate = Callable[[str], None]

INIT_ERROR_ACTIONS = ("retry", "sign_out")


class InitializationError(Exception):
    """Onboarding cannot start; shown full-screen with retry / sign out."""


class InitKind(str, enum.Enum):
    READY = "ready"
    REDIRECTED = "redirected"
    ERROR = "error"


@dataclass
class InitOutcome:
    kind: InitKind
    session: OnboardingSession | None = None
    redirect_url: str | None = None
    message: str | None = None
    actions: tuple[str, ...] = field(default_factory=tuple)


def _parse_datetime(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def _valid_fields(candidates: dict, source: str) -> dict:
    """Keep the entries ProfileFields accepts one by one; log and drop the rest."""
    valid = {}
    for k, v in candidates.items():
        try:
            ProfileFields.model_validate({k: v})
        except ValidationError:
            logger.warning("Dropping invalid %s value for %s: %r", source, k, v)
            continue
        valid[k] = v
    return valid


def _profile_values(profile: dict) -> dict:
    """Non-empty wizard fields already stored on the profile record."""
    values = _valid_fields(
        {
            k: v
            for k, v in profile.items()
            if k in PROFILE_FIELD_NAMES and k not in CLIENT_ONLY_FIELDS and v not in (None, "")
        },
        "profile",
    )
    if values.get("resume_document_id"):
        values["resume_uploaded"] = True
    return values


def _restored_values(snapshot_data: dict) -> dict:
    """Snapshot fields that may be restored; unknown, handle or invalid fields are dropped."""
    return _valid_fields(
        {
            k: v
            for k, v in snapshot_data.items()
            if k in PROFILE_FIELD_NAMES and k not in NON_SERIALIZABLE_FIELDS
        },
        "snapshot",
    )


def seed_session(profile: dict, account: dict, profile_is_new: bool = False) -> OnboardingSession:
    """Build the starting session.

    A profile created during this initialization contributes only its id:
    its seed values are not answers the user has given.
    """
    metadata = account.get("onboarding_metadata") or {}

    step = OnboardingStep.CONTACT
    restored: dict = {}
    started_at = None
    if metadata:
        step = metadata.get("current_step") or OnboardingStep.CONTACT
        restored = _restored_values(metadata.get("profile_data") or {})
        started_at = _parse_datetime(metadata.get("started_at"))
    if step not in NAVIGABLE_STEPS:
        logger.warning("Saved onboarding step %r out of range, restarting at 1", step)
        step = OnboardingStep.CONTACT

    try:
        status = OnboardingStatus(account.get("onboarding_status") or OnboardingStatus.PENDING)
    except ValueError:
        status = OnboardingStatus.PENDING

    session = OnboardingSession(
        current_step=int(step),
        status=status,
        candidate_id=profile.get("id"),
        started_at=started_at or datetime.now(timezone.utc),
    )
    if not profile_is_new:
        session.merge_fields(_profile_values(profile))
    session.merge_fields(restored)
    return session


class InitializationSequencer:
    def __init__(
        self,
        backend: ProfileBackend,
        navigate: Navigate,
        token_provider: TokenProvider | None = None,
        post_onboarding_url: str | None = None,
    ):
        self._backend = backend
        self._navigate = navigate
        self._token_provider = token_provider
        self.post_onboarding_url = post_onboarding_url or settings.post_onboarding_url

    async def run(self, principal: Principal) -> InitOutcome:
        try:
            return await self._run(principal)
        except Exception as e:
            logger.error("Onboarding initialization failed", exc_info=True)
            message = str(e) or "Failed to load your profile"
            return InitOutcome(kind=InitKind.ERROR, message=message, actions=INIT_ERROR_ACTIONS)

    async def _run(self, principal: Principal) -> InitOutcome:
        if self._token_provider is not None and not await self._token_provider():
            raise InitializationError("No authentication token")

        profile, profile_is_new = await self._resolve_profile(principal)
        account = await self._backend.fetch_account_record()
        if not account:
            raise InitializationError("Unable to load your account")

        status = account.get("onboarding_status")
        if principal.is_admin or status in {s.value for s in TERMINAL_STATUSES}:
            logger.info("Onboarding already %s, leaving wizard", status or "bypassed")
            self._navigate(self.post_onboarding_url)
            return InitOutcome(kind=InitKind.REDIRECTED, redirect_url=self.post_onboarding_url)

        return InitOutcome(kind=InitKind.READY, session=seed_session(profile, account, profile_is_new))

    async def _resolve_profile(self, principal: Principal) -> tuple[dict, bool]:
        """Return the caller's profile and whether this call created it."""
        try:
            profile = await self._backend.fetch_own_profile()
            if profile:
                return profile, False
        except ProfileBackendError as e:
            logger.info("Profile lookup failed (%s), creating account", e.message)

        result = await self._backend.create_account_and_profile({
            "email": principal.email,
            "name": principal.name or None,
            "image_url": principal.image_url,
        })
        if not result.success:
            raise InitializationError(result.error or "Failed to create profile, please retry")
        if not result.profile:
            raise InitializationError("Failed to create profile, please retry")
        return result.profile, True

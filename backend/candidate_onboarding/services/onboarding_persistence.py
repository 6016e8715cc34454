"""Best-effort saving of onboarding progress to the account record.

At most one write is in flight. A persist() call that arrives while a
write is running is dropped, not queued; the next step transition takes
a fresh snapshot that already includes whatever changed in between.
Failures are logged and swallowed: the live session stays the source of
truth until submit.
"""

import asyncio
import logging
from datetime import datetime, timezone

from candidate_onboarding.config import settings
from candidate_onboarding.schemas.onboarding import OnboardingSnapshot
from candidate_onboarding.services.onboarding_session import (
    OnboardingSession,
    serializable_profile_data,
)
from candidate_onboarding.services.profile_backend import ProfileBackend

logger = logging.getLogger(__name__)


def default_device_info() -> dict:
    return {
        "platform": settings.client_platform,
        "user_agent": settings.client_user_agent,
    }


def build_snapshot(session: OnboardingSession, device_info: dict | None = None) -> OnboardingSnapshot:
    """Derive the resumability payload from the session as it is right now."""
    return OnboardingSnapshot(
        current_step=session.current_step,
        status=session.status.value,
        completed_steps=list(range(1, session.current_step)),
        profile_data=serializable_profile_data(session.profile_data),
        started_at=session.started_at,
        last_updated_at=datetime.now(timezone.utc),
        device_info=device_info if device_info is not None else default_device_info(),
    )


class PersistenceSynchronizer:
    def __init__(self, backend: ProfileBackend, device_info: dict | None = None):
        self._backend = backend
        self._device_info = device_info
        self._tasks: set[asyncio.Task] = set()
        self.in_flight = False

    def persist(self, session: OnboardingSession) -> asyncio.Task | None:
        """Spawn a background write of the current snapshot.

        Returns the task, or None if a write was already in flight.
        Must be called from a running event loop.
        """
        if self.in_flight:
            logger.debug("Persist skipped: write already in flight")
            return None

        snapshot = build_snapshot(session, self._device_info)
        self.in_flight = True
        task = asyncio.create_task(self._write(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _write(self, snapshot: OnboardingSnapshot) -> None:
        try:
            await self._backend.update_account_record({
                "onboarding_metadata": snapshot.model_dump(mode="json"),
                "onboarding_step": snapshot.current_step,
                "onboarding_status": snapshot.status,
            })
            logger.debug("Onboarding state persisted (step %d)", snapshot.current_step)
        except Exception:
            logger.warning("Failed to persist onboarding state", exc_info=True)
        finally:
            self.in_flight = False

    async def wait_idle(self) -> None:
        """Wait for outstanding writes (tests, orderly shutdown)."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

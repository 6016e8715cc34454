"""Step transitions for the candidate onboarding wizard.

Steps 1-5 are freely navigable in either direction; nothing is required,
so no validation blocks navigation. Step 6 is the post-submit summary and
is only reachable through a successful submit().

Every navigation schedules a background save of the session snapshot.
Field edits are local until the next navigation (or an explicit flush).
Backend failures never escape: submit/skip record them on session.error,
resume uploads on session.upload_error, and background saves only log.
"""

import asyncio
import logging
from datetime import datetime, timezone

from candidate_onboarding.auth.jwt import Principal
from candidate_onboarding.config import settings
from candidate_onboarding.models.user import OnboardingStatus
from candidate_onboarding.schemas.onboarding import ResumeFile
from candidate_onboarding.services.onboarding_init import (
    InitializationSequencer,
    InitKind,
    InitOutcome,
    Navigate,
)
from candidate_onboarding.services.onboarding_persistence import PersistenceSynchronizer
from candidate_onboarding.services.onboarding_session import (
    NAVIGABLE_STEPS,
    OnboardingSession,
    OnboardingStep,
    populated_fields,
)
from candidate_onboarding.services.profile_backend import ProfileBackend, TokenProvider
from candidate_onboarding.utils.file_validation import document_validation_error

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first_error(results: list) -> BaseException | None:
    for result in results:
        if isinstance(result, BaseException):
            return result
    return None


class OnboardingController:
    def __init__(
        self,
        session: OnboardingSession,
        backend: ProfileBackend,
        navigate: Navigate,
        persistence: PersistenceSynchronizer | None = None,
        post_onboarding_url: str | None = None,
        completion_redirect_seconds: float | None = None,
    ):
        self.session = session
        self._backend = backend
        self._navigate = navigate
        self.persistence = persistence or PersistenceSynchronizer(backend)
        self.post_onboarding_url = post_onboarding_url or settings.post_onboarding_url
        self.completion_redirect_seconds = (
            completion_redirect_seconds
            if completion_redirect_seconds is not None
            else settings.completion_redirect_seconds
        )
        self._redirect_task: asyncio.Task | None = None

    # ── Navigation ───────────────────────────────────────────

    def go_to_step(self, step: int) -> None:
        if step not in NAVIGABLE_STEPS:
            raise ValueError(f"Step {step} is not navigable")

        self.session.current_step = step
        if self.session.status == OnboardingStatus.PENDING and step > OnboardingStep.CONTACT:
            self.session.status = OnboardingStatus.IN_PROGRESS
        self.flush()

    def update_fields(self, partial: dict) -> None:
        self.session.merge_fields(partial)

    def flush(self) -> asyncio.Task | None:
        """Save progress in the background. No-op once onboarding is finished."""
        if self.session.is_finished:
            return None
        return self.persistence.persist(self.session)

    # ── Terminal transitions ─────────────────────────────────

    async def submit(self) -> bool:
        session = self.session
        if session.candidate_id is None:
            session.error = "No profile found"
            return False

        session.submitting = True
        session.error = None
        # A progress save still in flight must land before the terminal write
        await self.persistence.wait_idle()

        writes = []
        fields = populated_fields(session.profile_data)
        if fields:
            writes.append(self._backend.update_profile(session.candidate_id, fields))
        writes.append(self._backend.update_account_record({
            "onboarding_status": OnboardingStatus.COMPLETED.value,
            "onboarding_completed_at": _now_iso(),
        }))

        error = _first_error(await asyncio.gather(*writes, return_exceptions=True))
        if error is not None:
            logger.error("Onboarding submit failed: %s", error)
            session.submitting = False
            session.error = str(error) or "Failed to complete onboarding"
            return False

        session.current_step = OnboardingStep.COMPLETE
        session.status = OnboardingStatus.COMPLETED
        session.submitting = False
        logger.info("Onboarding completed for candidate %s", session.candidate_id)
        return True

    async def skip(self) -> bool:
        session = self.session
        session.submitting = True
        session.error = None
        await self.persistence.wait_idle()

        try:
            await self._backend.update_account_record({
                "onboarding_status": OnboardingStatus.SKIPPED.value,
                "onboarding_completed_at": _now_iso(),
            })
        except Exception as e:
            logger.error("Onboarding skip failed: %s", e)
            session.submitting = False
            session.error = str(e) or "Failed to skip onboarding"
            return False

        session.status = OnboardingStatus.SKIPPED
        session.submitting = False
        self._navigate(self.post_onboarding_url)
        return True

    def schedule_completion_redirect(self) -> asyncio.Task:
        """Leave the summary step after the dwell time. Idempotent."""
        if self._redirect_task is None:
            self._redirect_task = asyncio.create_task(self._redirect_after_dwell())
        return self._redirect_task

    async def _redirect_after_dwell(self) -> None:
        await asyncio.sleep(self.completion_redirect_seconds)
        self._navigate(self.post_onboarding_url)

    # ── Resume attachment ────────────────────────────────────

    async def attach_resume(self, file: ResumeFile) -> bool:
        session = self.session
        session.upload_error = None

        error = document_validation_error(file.filename, file.content_type, file.size_bytes)
        if error:
            session.upload_error = error
            return False

        session.uploading = True
        try:
            document = await self._backend.upload_document(file, {"document_type": "resume"})
        except Exception as e:
            logger.warning("Resume upload failed: %s", e)
            session.upload_error = str(e) or "Failed to upload resume"
            return False
        finally:
            session.uploading = False

        previous_id = session.profile_data.get("resume_document_id")
        session.merge_fields({
            "resume_file": file,
            "resume_uploaded": True,
            "resume_document_id": document["id"],
        })
        if previous_id and previous_id != document["id"]:
            await self._discard_document(previous_id)
        return True

    async def remove_resume(self) -> bool:
        session = self.session
        session.upload_error = None

        document_id = session.profile_data.get("resume_document_id")
        if document_id:
            try:
                await self._backend.delete_document(document_id)
            except Exception as e:
                logger.warning("Resume delete failed: %s", e)
                session.upload_error = str(e) or "Failed to remove resume"
                return False

        session.merge_fields({
            "resume_file": None,
            "resume_uploaded": False,
            "resume_document_id": None,
        })
        return True

    async def _discard_document(self, document_id: str) -> None:
        try:
            await self._backend.delete_document(document_id)
        except Exception:
            logger.warning("Could not delete replaced resume %s", document_id, exc_info=True)


async def start_onboarding(
    principal: Principal,
    backend: ProfileBackend,
    navigate: Navigate,
    token_provider: TokenProvider | None = None,
) -> tuple[InitOutcome, OnboardingController | None]:
    """Initialize and, if the wizard should be shown, wrap it in a controller."""
    sequencer = InitializationSequencer(backend, navigate, token_provider)
    outcome = await sequencer.run(principal)
    if outcome.kind != InitKind.READY:
        return outcome, None
    controller = OnboardingController(
        outcome.session,
        backend,
        navigate,
        post_onboarding_url=sequencer.post_onboarding_url,
    )
    return outcome, controller

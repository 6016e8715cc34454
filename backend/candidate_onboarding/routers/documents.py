"""Candidate document endpoints (resume attachments).

Endpoints:
  POST   /api/v2/documents       → multipart upload, returns metadata
  DELETE /api/v2/documents/{id}  → remove metadata + stored bytes
"""

from pathlib import PurePath

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from candidate_onboarding.auth.deps import get_current_user
from candidate_onboarding.config import settings
from candidate_onboarding.database import get_db
from candidate_onboarding.middleware.exceptions import (
    BusinessLogicError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from candidate_onboarding.models.candidate import Candidate
from candidate_onboarding.models.document import Document
from candidate_onboarding.models.user import User
from candidate_onboarding.routers.candidates import get_candidate_for_user
from candidate_onboarding.schemas.common import DataResponse
from candidate_onboarding.schemas.document import DocumentOut
from candidate_onboarding.services.documents import DocumentStore, get_document_store
from candidate_onboarding.utils.file_validation import document_validation_error, sanitize_filename

router = APIRouter()

CHUNK_SIZE_BYTES = 64 * 1024


async def _read_with_limit(file: UploadFile, max_size: int) -> bytes:
    content = bytearray()
    while True:
        chunk = await file.read(CHUNK_SIZE_BYTES)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > max_size:
            raise BusinessLogicError(
                f"File too large. Maximum size: {max_size // (1024 * 1024)}MB",
                error_code="FILE_TOO_LARGE",
            )
    return bytes(content)


async def _require_candidate(db: AsyncSession, user: User) -> Candidate:
    candidate = await get_candidate_for_user(db, user.id)
    if not candidate:
        raise ResourceNotFoundError("Candidate", f"user {user.id}")
    return candidate


@router.post("", response_model=DataResponse[DocumentOut], status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    document_type: str = Form("resume"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
):
    candidate = await _require_candidate(db, user)

    filename = sanitize_filename(file.filename or "")
    content_type = file.content_type or "application/octet-stream"
    content = await _read_with_limit(file, settings.max_document_bytes)

    error = document_validation_error(filename, content_type, len(content))
    if error:
        raise BusinessLogicError(error, error_code="INVALID_DOCUMENT")

    storage_key = await store.save(content, suffix=PurePath(filename).suffix.lower())
    document = Document(
        candidate_id=candidate.id,
        filename=filename,
        content_type=content_type,
        size_bytes=len(content),
        document_type=document_type,
        storage_key=storage_key,
    )
    db.add(document)
    await db.flush()
    await db.refresh(document)
    return {"data": DocumentOut.model_validate(document)}


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
):
    candidate = await _require_candidate(db, user)

    result = await db.execute(select(Document).where(Document.id == document_id))
    document = result.scalar_one_or_none()
    if not document:
        raise ResourceNotFoundError("Document", document_id)
    if document.candidate_id != candidate.id:
        raise PermissionDeniedError("Cannot delete another candidate's document")

    # Clear the profile reference so it never points at a missing file
    if candidate.resume_document_id == document.id:
        candidate.resume_document_id = None

    await db.delete(document)
    await db.commit()
    # Bytes go only after the row is gone
    await store.delete(document.storage_key)

"""Resume file validation shared by the onboarding client and the service.

The client runs the same checks before it ever opens a connection, so a
wrong type or an oversized file is reported inline without a round trip.
"""

import re
from pathlib import PurePath

from candidate_onboarding.config import settings

# Allowed MIME types and the extensions that may carry them
ALLOWED_DOCUMENT_TYPES: dict[str, tuple[str, ...]] = {
    "application/pdf": (".pdf",),
    "application/msword": (".doc",),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (".docx",),
}


def document_validation_error(
    filename: str,
    content_type: str,
    size_bytes: int,
    max_bytes: int | None = None,
) -> str | None:
    """Return a user-facing message if the file is unacceptable, else None."""
    max_bytes = max_bytes if max_bytes is not None else settings.max_document_bytes

    extensions = ALLOWED_DOCUMENT_TYPES.get(content_type)
    if extensions is None or PurePath(filename).suffix.lower() not in extensions:
        return "Invalid file type. Allowed: PDF, DOC, DOCX."
    if size_bytes <= 0:
        return "File is empty."
    if size_bytes > max_bytes:
        return f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB"
    return None


def sanitize_filename(filename: str, max_length: int = 200) -> str:
    """Strip path components and characters unsafe for storage or headers."""
    safe = PurePath(filename.replace("\\", "/")).name
    safe = re.sub(r'["\r\n;]', "", safe)
    safe = re.sub(r"[\x00-\x1f\x7f]", "", safe)

    if len(safe) > max_length:
        if "." in safe:
            name, ext = safe.rsplit(".", 1)
            ext = f".{ext}"
            safe = name[: max_length - len(ext)] + ext
        else:
            safe = safe[:max_length]

    return safe or "document"

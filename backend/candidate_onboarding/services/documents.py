"""Local-disk document store.

Files are written under settings.document_storage_dir with a random
storage key; the Document row keeps the metadata and the key.
"""

import asyncio
import logging
import uuid
from pathlib import Path

from candidate_onboarding.config import settings

logger = logging.getLogger(__name__)


class DocumentStore:
    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or settings.document_storage_dir)

    def _path(self, storage_key: str) -> Path:
        return self.root / storage_key

    async def save(self, content: bytes, suffix: str = "") -> str:
        storage_key = f"{uuid.uuid4().hex}{suffix}"
        path = self._path(storage_key)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, content)
        return storage_key

    async def delete(self, storage_key: str) -> None:
        try:
            await asyncio.to_thread(self._path(storage_key).unlink)
        except FileNotFoundError:
            logger.warning("Document %s already missing from store", storage_key)


def get_document_store() -> DocumentStore:
    return DocumentStore()

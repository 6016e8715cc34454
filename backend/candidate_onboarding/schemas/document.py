from datetime import datetime

from pydantic import BaseModel


class DocumentOut(BaseModel):
    id: str
    candidate_id: str
    filename: str
    content_type: str
    size_bytes: int
    document_type: str
    created_at: datetime

    model_config = {"from_attributes": True}

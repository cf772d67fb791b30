"""Pydantic schemas for stored file metadata."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class StoredFileResponse(BaseModel):
    id: int
    original_name: str
    mime: str
    size: int
    entity: str
    entity_id: int
    purpose: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

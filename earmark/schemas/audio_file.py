"""Audio file schemas for API responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AudioFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    file_path: str
    duration_seconds: int | None = None
    file_size_bytes: int
    created_at: datetime
    modified_at: datetime | None = None
    last_scanned: datetime
    deleted: bool


class ScanResultResponse(BaseModel):
    """Counts reported by a library scan."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    new_files: int
    deleted_files: int
    total_files: int


class DeleteResponse(BaseModel):
    success: bool

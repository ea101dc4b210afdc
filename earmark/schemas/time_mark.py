"""Time mark schemas for API requests and responses."""

import math
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from earmark.models.time_mark import MAX_NOTE_LENGTH


class TimeMarkCreate(BaseModel):
    audio_file_id: int = Field(gt=0)
    time_seconds: float = Field(ge=0)
    note: str | None = Field(default="", validate_default=True)

    @field_validator("time_seconds")
    @classmethod
    def validate_time_seconds(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("time_seconds must be a finite number")
        return v

    @field_validator("note")
    @classmethod
    def validate_note(cls, v: str | None) -> str:
        """Trim the note and enforce the length limit after trimming."""
        note = (v or "").strip()
        if len(note) > MAX_NOTE_LENGTH:
            raise ValueError(f"Note must be at most {MAX_NOTE_LENGTH} characters")
        return note


class TimeMarkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    audio_file_id: int
    time_seconds: float
    note: str
    created_at: datetime

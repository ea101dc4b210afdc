from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from earmark.db.base import Base, CreatedAtMixin

MAX_NOTE_LENGTH = 200


class TimeMark(Base, CreatedAtMixin):
    """A user note pinned to an offset within an audio file."""

    __tablename__ = "time_marks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    audio_file_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("audio_files.id", ondelete="CASCADE"), index=True, nullable=False
    )
    time_seconds: Mapped[float] = mapped_column(Float, nullable=False)
    note: Mapped[str] = mapped_column(String(MAX_NOTE_LENGTH), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<TimeMark {self.id} file={self.audio_file_id} at {self.time_seconds}s>"

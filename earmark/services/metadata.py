"""
Audio file metadata extraction.

Duration comes from mutagen; size and timestamps come from the filesystem.
Duration is best-effort: an unreadable file still yields size and
timestamps, with no duration.
"""

import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from mutagen import MutagenError
from mutagen.mp3 import MP3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileMetadata:
    duration_seconds: int | None
    file_size_bytes: int
    created_at: datetime
    modified_at: datetime


def extract_duration(file_path: Path) -> int | None:
    """
    Read the playing time of an MP3 file.

    Returns:
        Whole seconds (rounded down), or None if the file could not be parsed
    """
    try:
        audio = MP3(file_path)
    except (MutagenError, OSError, ValueError) as e:
        logger.warning(f"Could not extract metadata from {file_path}: {e}")
        return None

    length = getattr(audio.info, "length", None)
    if not length or not math.isfinite(length):
        return None
    return int(length)


def _creation_time(stat: os.stat_result) -> float:
    # st_birthtime is only reported on macOS/BSD and recent Windows builds
    return getattr(stat, "st_birthtime", stat.st_ctime)


def read_file_metadata(file_path: Path) -> FileMetadata:
    """Collect size, timestamps and duration for a newly discovered file."""
    stat = file_path.stat()
    return FileMetadata(
        duration_seconds=extract_duration(file_path),
        file_size_bytes=stat.st_size,
        created_at=datetime.fromtimestamp(_creation_time(stat), tz=timezone.utc),
        modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
    )

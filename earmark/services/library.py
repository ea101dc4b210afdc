"""
Audio library synchronization.

Reconciles the MP3 files found under the audio root with the ``audio_files``
table:

- files seen for the first time are inserted with their metadata
- soft-deleted entries whose file reappears are restored
- live entries whose file has disappeared are soft-deleted

Entries are matched by filename only, so two files with the same name in
different directories map to the same entry; the last one scanned wins.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from earmark.models.audio_file import AudioFile
from earmark.services.metadata import read_file_metadata

logger = logging.getLogger(__name__)

AUDIO_EXTENSION = ".mp3"


@dataclass
class ScanResult:
    new_files: int = 0
    deleted_files: int = 0
    total_files: int = 0
    restored_files: int = 0


def discover_audio_files(directory: Path) -> list[Path]:
    """
    Recursively collect MP3 files below ``directory``.

    A directory that cannot be read is logged and skipped together with its
    subtree; the rest of the walk continues. Symlinks are not followed.
    """
    found: list[Path] = []

    try:
        with os.scandir(directory) as entries:
            children = list(entries)
    except OSError as e:
        logger.error(f"Error scanning directory {directory}: {e}")
        return found

    for entry in sorted(children, key=lambda e: e.name):
        if entry.is_dir(follow_symlinks=False):
            found.extend(discover_audio_files(Path(entry.path)))
        elif entry.is_file(follow_symlinks=False) and entry.name.lower().endswith(AUDIO_EXTENSION):
            found.append(Path(entry.path))

    return found


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AudioLibrary:
    """
    The audio root and the synchronizer that keeps the database in step with it.

    Only one sync runs at a time; a second caller waits for the running sync
    to finish and then performs its own.
    """

    def __init__(self, audio_root: str | Path):
        self.audio_root = Path(audio_root)
        self._sync_lock = asyncio.Lock()

    def resolve_path(self, entry: AudioFile) -> Path:
        """Absolute location of an entry's backing file."""
        return self.audio_root / entry.file_path

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    async def sync(self, db: AsyncSession) -> ScanResult:
        async with self._sync_lock:
            return await self._sync(db)

    async def _sync(self, db: AsyncSession) -> ScanResult:
        logger.info(f"Scanning audio directory: {self.audio_root}")
        result = ScanResult()

        if not await asyncio.to_thread(self.audio_root.is_dir):
            logger.error(f"Audio path does not exist: {self.audio_root}")
            result.total_files = await self._count_entries(db)
            return result

        found_files = await asyncio.to_thread(discover_audio_files, self.audio_root)
        logger.info(f"Found {len(found_files)} MP3 files")

        for file_path in found_files:
            await self._reconcile_found_file(db, file_path, result)
        await db.commit()

        result.deleted_files = await self._soft_delete_missing(db)
        result.total_files = await self._count_entries(db)

        logger.info(
            f"Scan complete: {result.new_files} new, {result.restored_files} restored, "
            f"{result.deleted_files} deleted, {result.total_files} total"
        )
        return result

    async def _reconcile_found_file(
        self, db: AsyncSession, file_path: Path, result: ScanResult
    ) -> None:
        filename = file_path.name
        existing = (
            await db.execute(select(AudioFile).where(AudioFile.filename == filename))
        ).scalar_one_or_none()

        if existing is None:
            metadata = await asyncio.to_thread(read_file_metadata, file_path)
            db.add(
                AudioFile(
                    filename=filename,
                    file_path=file_path.relative_to(self.audio_root).as_posix(),
                    duration_seconds=metadata.duration_seconds,
                    file_size_bytes=metadata.file_size_bytes,
                    created_at=metadata.created_at,
                    modified_at=metadata.modified_at,
                    last_scanned=_utcnow(),
                )
            )
            # Make the new row visible to lookups for later same-named files
            await db.flush()
            result.new_files += 1
            logger.debug(f"Added {filename}")
        elif existing.deleted:
            existing.deleted = False
            existing.last_scanned = _utcnow()
            result.restored_files += 1
            logger.info(f"Restored {filename}")
        else:
            existing.last_scanned = _utcnow()

    async def _soft_delete_missing(self, db: AsyncSession) -> int:
        live_entries = (
            await db.execute(select(AudioFile).where(AudioFile.deleted.is_(False)))
        ).scalars().all()

        paths = [self.resolve_path(entry) for entry in live_entries]
        exists = await asyncio.to_thread(lambda: [path.exists() for path in paths])

        deleted = 0
        for entry, present in zip(live_entries, exists):
            if not present:
                entry.deleted = True
                deleted += 1
                logger.info(f"Marked {entry.filename} as deleted")

        await db.commit()
        return deleted

    async def _count_entries(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(AudioFile))
        return result.scalar() or 0

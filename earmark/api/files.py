import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete, select

from earmark.api.deps import DbSession, Library, api_rate_limit, require_trusted_session
from earmark.core.errors import not_found
from earmark.models.audio_file import AudioFile
from earmark.models.time_mark import TimeMark
from earmark.schemas.audio_file import AudioFileResponse, DeleteResponse, ScanResultResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/files",
    tags=["files"],
    dependencies=[Depends(require_trusted_session), Depends(api_rate_limit)],
)


@router.get("", response_model=list[AudioFileResponse])
async def list_files(db: DbSession):
    """List every entry, soft-deleted ones included, newest first."""
    result = await db.execute(
        select(AudioFile).order_by(AudioFile.created_at.desc(), AudioFile.id.desc())
    )
    return result.scalars().all()


# Declared before /{file_id} routes so "scan" is never parsed as an id
@router.post("/scan", response_model=ScanResultResponse)
async def scan_files(db: DbSession, library: Library):
    result = await library.sync(db)
    return ScanResultResponse(
        new_files=result.new_files,
        deleted_files=result.deleted_files,
        total_files=result.total_files,
    )


@router.get("/{file_id}", response_model=AudioFileResponse)
async def get_file(file_id: int, db: DbSession):
    audio_file = await db.get(AudioFile, file_id)
    if audio_file is None:
        raise not_found("File")
    return audio_file


@router.delete("/{file_id}", response_model=DeleteResponse)
async def delete_file(file_id: int, db: DbSession):
    """Remove an entry and its marks. The file on disk is left untouched."""
    audio_file = await db.get(AudioFile, file_id)
    if audio_file is None:
        raise not_found("File")

    await db.execute(delete(TimeMark).where(TimeMark.audio_file_id == file_id))
    await db.delete(audio_file)
    await db.commit()

    logger.info(f"Deleted file entry {file_id} ({audio_file.filename})")
    return DeleteResponse(success=True)

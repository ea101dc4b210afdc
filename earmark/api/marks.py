from fastapi import APIRouter, Depends, status
from sqlalchemy import select

from earmark.api.deps import DbSession, api_rate_limit, require_trusted_session
from earmark.core.errors import not_found
from earmark.models.audio_file import AudioFile
from earmark.models.time_mark import TimeMark
from earmark.schemas.audio_file import DeleteResponse
from earmark.schemas.time_mark import TimeMarkCreate, TimeMarkResponse

router = APIRouter(
    prefix="/marks",
    tags=["marks"],
    dependencies=[Depends(require_trusted_session), Depends(api_rate_limit)],
)


@router.get("/{file_id}", response_model=list[TimeMarkResponse])
async def list_marks(file_id: int, db: DbSession):
    """Marks for one file in playback order. Unknown files have no marks."""
    result = await db.execute(
        select(TimeMark)
        .where(TimeMark.audio_file_id == file_id)
        .order_by(TimeMark.time_seconds.asc(), TimeMark.id.asc())
    )
    return result.scalars().all()


@router.post("", response_model=TimeMarkResponse, status_code=status.HTTP_201_CREATED)
async def create_mark(mark_data: TimeMarkCreate, db: DbSession):
    audio_file = await db.get(AudioFile, mark_data.audio_file_id)
    if audio_file is None or audio_file.deleted:
        raise not_found("File")

    mark = TimeMark(
        audio_file_id=mark_data.audio_file_id,
        time_seconds=mark_data.time_seconds,
        note=mark_data.note,
    )
    db.add(mark)
    await db.commit()
    await db.refresh(mark)
    return mark


@router.delete("/{mark_id}", response_model=DeleteResponse)
async def delete_mark(mark_id: int, db: DbSession):
    mark = await db.get(TimeMark, mark_id)
    if mark is None:
        raise not_found("Mark")

    await db.delete(mark)
    await db.commit()
    return DeleteResponse(success=True)

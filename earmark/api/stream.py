import asyncio
import logging

from fastapi import APIRouter, Depends, Request

from earmark.api.deps import DbSession, Library, require_trusted_session
from earmark.core.errors import not_found
from earmark.models.audio_file import AudioFile
from earmark.services.streaming import build_stream_response, stat_audio_file

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stream",
    tags=["stream"],
    dependencies=[Depends(require_trusted_session)],
)


@router.get("/{file_id}")
async def stream_file(file_id: int, request: Request, db: DbSession, library: Library):
    """Serve an audio file, honouring a single ``Range`` header."""
    audio_file = await db.get(AudioFile, file_id)
    if audio_file is None or audio_file.deleted:
        logger.info(f"Stream requested for unknown file {file_id}")
        raise not_found("File")

    file_path = library.resolve_path(audio_file)
    total_length = await asyncio.to_thread(stat_audio_file, file_path)
    if total_length is None:
        logger.warning(f"Audio file {audio_file.filename} is missing on disk: {file_path}")
        raise not_found("File")

    return build_stream_response(file_path, total_length, request.headers.get("range"))

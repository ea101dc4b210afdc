"""
Byte-range audio streaming.

Serves a file either whole (200) or as a single requested byte span (206).
A range that starts or ends past the last byte is answered with 416 and an
empty body rather than falling back to the full file.
"""

import re
import stat
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

import anyio
from fastapi import Response, status
from fastapi.responses import StreamingResponse

AUDIO_MEDIA_TYPE = "audio/mpeg"
CHUNK_SIZE = 64 * 1024

_RANGE_PATTERN = re.compile(r"^bytes=(\d+)-(\d*)$")


class RangeNotSatisfiable(Exception):
    """The requested byte range does not fit inside the file."""

    def __init__(self, total_length: int):
        self.total_length = total_length
        super().__init__(f"Range not satisfiable for length {total_length}")


@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def parse_range_header(header: str, total_length: int) -> ByteRange:
    """
    Parse ``bytes=<start>-<end>`` with an optional end.

    The end defaults to the last byte of the file. Only a single range is
    supported; anything else is unsatisfiable.

    Raises:
        RangeNotSatisfiable: If the header is malformed, or start or end lies
            at or beyond ``total_length``, or start is after end
    """
    match = _RANGE_PATTERN.match(header.strip())
    if match is None:
        raise RangeNotSatisfiable(total_length)

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else total_length - 1

    if start >= total_length or end >= total_length or start > end:
        raise RangeNotSatisfiable(total_length)

    return ByteRange(start=start, end=end)


async def iter_file_range(
    file_path: Path, start: int, end: int, chunk_size: int = CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """
    Yield bytes ``start``..``end`` (inclusive) of a file in bounded chunks.

    Cancelling the consumer (client disconnect) closes the file.
    """
    remaining = end - start + 1
    async with await anyio.open_file(file_path, "rb") as f:
        await f.seek(start)
        while remaining > 0:
            chunk = await f.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


def stat_audio_file(file_path: Path) -> int | None:
    """Size in bytes of a regular file, or None if there is none at ``file_path``.

    Blocks on the filesystem; call it through ``asyncio.to_thread``.
    """
    try:
        file_stat = file_path.stat()
    except FileNotFoundError:
        return None
    if not stat.S_ISREG(file_stat.st_mode):
        return None
    return file_stat.st_size


def build_stream_response(
    file_path: Path, total_length: int, range_header: str | None
) -> Response:
    """Create the 200, 206 or 416 response for a file of ``total_length`` bytes."""

    if not range_header:
        headers = {
            "Content-Length": str(total_length),
            "Accept-Ranges": "bytes",
        }
        return StreamingResponse(
            iter_file_range(file_path, 0, total_length - 1),
            status_code=status.HTTP_200_OK,
            media_type=AUDIO_MEDIA_TYPE,
            headers=headers,
        )

    try:
        byte_range = parse_range_header(range_header, total_length)
    except RangeNotSatisfiable:
        return Response(
            status_code=416,
            headers={"Content-Range": f"bytes */{total_length}"},
        )

    headers = {
        "Content-Range": f"bytes {byte_range.start}-{byte_range.end}/{total_length}",
        "Content-Length": str(byte_range.length),
        "Accept-Ranges": "bytes",
    }
    return StreamingResponse(
        iter_file_range(file_path, byte_range.start, byte_range.end),
        status_code=status.HTTP_206_PARTIAL_CONTENT,
        media_type=AUDIO_MEDIA_TYPE,
        headers=headers,
    )

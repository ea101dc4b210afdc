"""Shared test constants and helpers for building audio fixtures on disk."""

from pathlib import Path

TEST_PASSWORD = "correct horse battery staple"

# Minimal MPEG-1 Layer III frame header: 128 kbps, 44.1 kHz, no padding
MP3_FRAME_HEADER = b"\xff\xfb\x90\x00"
MP3_FRAME_LENGTH = 417


def make_mp3_bytes(frames: int = 10) -> bytes:
    """Build a stream of silent CBR frames that mutagen can parse."""
    frame = MP3_FRAME_HEADER + b"\x00" * (MP3_FRAME_LENGTH - len(MP3_FRAME_HEADER))
    return frame * frames


def write_audio(directory: Path, name: str, content: bytes | None = None) -> Path:
    """Write a file below ``directory``, creating subdirectories."""
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content if content is not None else make_mp3_bytes())
    return path

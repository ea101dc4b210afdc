from earmark.models.audio_file import AudioFile
from earmark.models.auth_attempt import AuthAttempt
from earmark.models.time_mark import MAX_NOTE_LENGTH, TimeMark

__all__ = [
    "AudioFile",
    "AuthAttempt",
    "MAX_NOTE_LENGTH",
    "TimeMark",
]

"""
Media format detection.

The transcription service needs to be told which container/codec the staged
audio uses.  Browsers usually send a reasonable ``Content-Type`` with the
upload, so that is checked first; the filename extension is only consulted
when the content type is empty or unrecognised.  Anything else falls back to
``webm``, which is what MediaRecorder produces by default.
"""

from typing import Optional, Tuple

DEFAULT_ENCODING = "webm"

ENCODINGS = frozenset({"webm", "wav", "mp3", "ogg", "mp4"})

# (substring in the content type, encoding)
_CONTENT_TYPE_HINTS: Tuple[Tuple[str, str], ...] = (
    ("webm", "webm"),
    ("wav", "wav"),
    ("mpeg", "mp3"),
    ("ogg", "ogg"),
)

_EXTENSION_HINTS: Tuple[Tuple[str, str], ...] = (
    (".webm", "webm"),
    (".wav", "wav"),
    (".mp3", "mp3"),
    (".ogg", "ogg"),
    (".mp4", "mp4"),
)


def resolve(content_type: Optional[str], filename: Optional[str]) -> str:
    """Pick the encoding tag for an upload.

    Args:
        content_type: The ``Content-Type`` sent with the file, if any.
        filename: The original filename, if any.

    Returns:
        One of :data:`ENCODINGS`.  Never raises.
    """
    mimetype = (content_type or "").lower()
    for needle, encoding in _CONTENT_TYPE_HINTS:
        if needle in mimetype:
            return encoding
    name = (filename or "").lower()
    for suffix, encoding in _EXTENSION_HINTS:
        if name.endswith(suffix):
            return encoding
    return DEFAULT_ENCODING

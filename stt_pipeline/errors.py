"""
Error taxonomy for a transcription run.

Every failure that leaves :meth:`TranscriptionOrchestrator.submit` is one of
the subclasses below, so the HTTP layer only has to look at ``kind`` to
decide on a status code and response body.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    STORE = "store"
    REMOTE_FAILURE = "remote_failure"
    TIMEOUT = "timeout"
    FETCH = "fetch"
    SERVER = "server"


class OrchestrationError(Exception):
    """Base class for categorised failures of a transcription run."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str, *, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason


class ValidationError(OrchestrationError):
    """Required input was missing; no remote call was made."""

    kind = ErrorKind.VALIDATION


class StoreError(OrchestrationError):
    """Staging or deleting the audio blob failed."""

    kind = ErrorKind.STORE


class RemoteFailure(OrchestrationError):
    """The transcription service reported the job as failed."""

    kind = ErrorKind.REMOTE_FAILURE

    def __init__(self, reason: str) -> None:
        super().__init__("Transcribe failed", reason=reason)


class Timeout(OrchestrationError):
    """The poll budget ran out before the job reached a terminal state."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Timeout waiting for transcription") -> None:
        super().__init__(message)


class FetchError(OrchestrationError):
    """The transcript payload could not be read or parsed."""

    kind = ErrorKind.FETCH


class UnknownServerError(OrchestrationError):
    kind = ErrorKind.SERVER

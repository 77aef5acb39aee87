"""
Core package for the speech-to-text backend.

This package contains the components used by the HTTP entrypoint in
:mod:`bharat_stt.main` to stage an upload in Cloud Storage, run a remote
transcription job, wait for it to finish and read back the transcript.
The collaborators (storage, speech, result fetching) are passed into the
:class:`~stt_pipeline.orchestrator.TranscriptionOrchestrator` so they can be
swapped for fakes in tests.
"""

from .errors import (
    ErrorKind,
    FetchError,
    OrchestrationError,
    RemoteFailure,
    StoreError,
    Timeout,
    UnknownServerError,
    ValidationError,
)
from .models import Job, JobStatus, TranscriptResult
from .orchestrator import TranscriptionOrchestrator, build_orchestrator

__all__ = [
    "ErrorKind",
    "FetchError",
    "Job",
    "JobStatus",
    "OrchestrationError",
    "RemoteFailure",
    "StoreError",
    "Timeout",
    "TranscriptResult",
    "TranscriptionOrchestrator",
    "UnknownServerError",
    "ValidationError",
    "build_orchestrator",
]

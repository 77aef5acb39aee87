"""
Orchestration of a single transcription run.

:class:`TranscriptionOrchestrator` drives one upload through the remote job
lifecycle:

1. Stage the audio in Cloud Storage under a key namespaced by the job id.
2. Start a recognition job that reads the staged audio.
3. Poll the job status a bounded number of times with a fixed delay.
4. On completion, fetch the result document and extract the transcript.
5. Delete the staged audio, whatever the outcome.

Failures surface as :class:`~stt_pipeline.errors.OrchestrationError`
subclasses.  Anything unexpected raised by a collaborator is wrapped in
:class:`~stt_pipeline.errors.UnknownServerError` so callers only ever see one
categorised error.
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Callable, Optional

from google.cloud import speech_v1p1beta1 as speech
from google.cloud import storage
from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_fixed

from . import media_format
from .config import Settings
from .errors import (
    OrchestrationError,
    RemoteFailure,
    Timeout,
    UnknownServerError,
    ValidationError,
)
from .job_service import UNKNOWN_FAILURE, SpeechJobService
from .media_store import GcsMediaStore
from .models import Job, JobRequest, JobSnapshot, JobStatus, TranscriptResult
from .result_fetcher import ResultFetcher

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "audio.webm"

# Statuses that end polling.  Anything else, including states this code has
# never seen, means "ask again".
_RESOLVED = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


def _still_running(snapshot: JobSnapshot) -> bool:
    return snapshot.status not in _RESOLVED


def _last_snapshot(retry_state) -> JobSnapshot:
    return retry_state.outcome.result()


class TranscriptionOrchestrator:
    """Run uploads through the remote transcription job lifecycle.

    Args:
        store: Stages and deletes audio blobs (see :class:`GcsMediaStore`).
        jobs: Starts jobs and reports their status (see
            :class:`SpeechJobService`).
        fetcher: Reads finished transcripts (see :class:`ResultFetcher`).
        default_language: Language code used when a request has none.
        upload_prefix: Key prefix for staged audio.
        job_prefix: Namespace prefix for generated job ids.
        poll_attempts: Maximum number of status queries per job.
        poll_interval: Seconds to wait between status queries.
        sleep: Called with the wait in seconds before each poll.
        clock: Returns the current time in seconds; used for job ids.
    """

    def __init__(
        self,
        store: GcsMediaStore,
        jobs: SpeechJobService,
        fetcher: ResultFetcher,
        *,
        default_language: str = "hi-IN",
        upload_prefix: str = "uploads/",
        job_prefix: str = "bharat_stt",
        poll_attempts: int = 25,
        poll_interval: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.jobs = jobs
        self.fetcher = fetcher
        self.default_language = default_language
        self.upload_prefix = upload_prefix
        self.job_prefix = job_prefix
        self.poll_attempts = poll_attempts
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    def new_job_id(self) -> str:
        millis = int(self._clock() * 1000)
        return f"{self.job_prefix}_{millis}_{uuid.uuid4().hex[:8]}"

    def staging_key(self, job_id: str, filename: Optional[str]) -> str:
        name = os.path.basename(filename or "") or DEFAULT_FILENAME
        return f"{self.upload_prefix}{job_id}_{name}"

    def submit(
        self,
        audio: Optional[bytes],
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
        language_code: Optional[str] = None,
    ) -> TranscriptResult:
        """Transcribe ``audio`` and return the result.

        Raises:
            ValidationError: ``audio`` is missing or empty.
            StoreError: The audio could not be staged.
            RemoteFailure: The service reported the job as failed.
            Timeout: The job did not finish within the poll budget.
            FetchError: The finished transcript could not be read.
            UnknownServerError: Anything else went wrong.
        """
        if not audio:
            raise ValidationError("audio file is required")
        language = language_code or self.default_language
        job_id = self.new_job_id()
        logger.info(
            json.dumps(
                {
                    "event": "stt_request",
                    "jobId": job_id,
                    "language": language,
                    "size": len(audio),
                }
            )
        )
        try:
            return self._run(job_id, audio, content_type, filename, language)
        except OrchestrationError:
            raise
        except Exception as exc:
            logger.exception("Unexpected error in job %s", job_id)
            raise UnknownServerError(str(exc) or type(exc).__name__) from exc

    def _run(
        self,
        job_id: str,
        audio: bytes,
        content_type: Optional[str],
        filename: Optional[str],
        language: str,
    ) -> TranscriptResult:
        encoding = media_format.resolve(content_type, filename)
        key = self.staging_key(job_id, filename)
        media_uri = self.store.put(key, audio, content_type)
        try:
            job = Job(
                job_id=job_id,
                media_uri=media_uri,
                language_code=language,
                encoding=encoding,
            )
            job.operation_name = self.jobs.start(
                JobRequest(
                    job_id=job_id,
                    language_code=language,
                    encoding=encoding,
                    media_uri=media_uri,
                    speaker_labels=False,
                )
            )
            self._poll(job)
            text = self.fetcher.fetch(job.result_uri)
        finally:
            self._cleanup(key)
        return TranscriptResult(job_id=job_id, language=language, text=text)

    def _observe(self, job: Job) -> JobSnapshot:
        snapshot = self.jobs.status(job.job_id, job.operation_name)
        logger.info(
            json.dumps(
                {
                    "event": "job_status",
                    "jobId": job.job_id,
                    "status": snapshot.status.value,
                }
            )
        )
        job.apply(snapshot)
        return snapshot

    def _poll(self, job: Job) -> None:
        """Poll until the job resolves or the attempt budget runs out.

        Every status query, the first included, is preceded by one
        ``poll_interval`` wait.

        On return the job is ``COMPLETED``; otherwise the matching error is
        raised and the job is left ``FAILED`` or ``TIMED_OUT``.
        """
        self._sleep(self.poll_interval)
        retrying = Retrying(
            stop=stop_after_attempt(self.poll_attempts),
            wait=wait_fixed(self.poll_interval),
            retry=retry_if_result(_still_running),
            sleep=self._sleep,
            retry_error_callback=_last_snapshot,
        )
        retrying(self._observe, job)

        if job.status is JobStatus.COMPLETED:
            return
        if job.status is JobStatus.FAILED:
            reason = job.failure_reason or UNKNOWN_FAILURE
            logger.warning(
                json.dumps({"event": "job_failed", "jobId": job.job_id, "reason": reason})
            )
            raise RemoteFailure(reason)
        job.transition(JobStatus.TIMED_OUT)
        logger.warning(
            json.dumps(
                {
                    "event": "job_timeout",
                    "jobId": job.job_id,
                    "attempts": self.poll_attempts,
                }
            )
        )
        raise Timeout()

    def _cleanup(self, key: str) -> None:
        try:
            self.store.delete(key)
        except Exception:
            logger.warning(
                json.dumps({"event": "cleanup_failed", "key": key}), exc_info=True
            )


def build_orchestrator(settings: Settings, **kwargs) -> TranscriptionOrchestrator:
    """Create the Google Cloud clients and wire them into an orchestrator."""
    if not settings.bucket:
        logger.error(json.dumps({"event": "config_error", "missing": "STT_BUCKET"}))

    storage_client = storage.Client()
    return TranscriptionOrchestrator(
        GcsMediaStore(storage_client, settings.bucket),
        SpeechJobService(
            speech.SpeechClient(),
            settings.bucket,
            output_prefix=settings.transcripts_prefix,
        ),
        ResultFetcher(storage_client, timeout=settings.fetch_timeout),
        default_language=settings.default_language,
        upload_prefix=settings.upload_prefix,
        job_prefix=settings.job_prefix,
        poll_attempts=settings.poll_attempts,
        poll_interval=settings.poll_interval,
        **kwargs,
    )

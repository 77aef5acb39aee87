"""
Data types shared by the orchestrator and its collaborators.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class JobStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.TIMED_OUT}
)


@dataclass
class JobRequest:
    """What the transcription service needs to start a job."""

    job_id: str
    language_code: str
    encoding: str
    media_uri: str
    speaker_labels: bool = False
    max_speakers: int = 2


@dataclass
class JobSnapshot:
    """A single status observation returned by the transcription service."""

    status: JobStatus
    result_uri: Optional[str] = None
    failure_reason: Optional[str] = None


@dataclass
class Job:
    """One transcription request, owned by a single orchestration run.

    ``status`` only moves forward: once the job reaches a terminal state,
    :meth:`transition` refuses any further change.
    """

    job_id: str
    media_uri: str
    language_code: str
    encoding: str
    status: JobStatus = JobStatus.PENDING
    operation_name: Optional[str] = None
    result_uri: Optional[str] = None
    failure_reason: Optional[str] = None

    def transition(self, status: JobStatus) -> None:
        if self.status.is_terminal:
            raise RuntimeError(
                f"Job {self.job_id} is already {self.status.value}; "
                f"cannot move to {status.value}"
            )
        self.status = status

    def apply(self, snapshot: JobSnapshot) -> None:
        """Fold a status observation into the job."""
        self.transition(snapshot.status)
        if snapshot.status is JobStatus.COMPLETED:
            self.result_uri = snapshot.result_uri
        elif snapshot.status is JobStatus.FAILED:
            self.failure_reason = snapshot.failure_reason


@dataclass
class TranscriptResult:
    job_id: str
    language: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "jobId": self.job_id,
            "language": self.language,
            "text": self.text,
        }

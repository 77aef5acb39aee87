"""
Runtime settings.

Everything is read from environment variables so the same image can be
deployed to different projects:

* ``STT_BUCKET`` – bucket used for staged audio and transcript output
  (required).
* ``STT_LOCATION`` – region reported by the health check.
* ``UPLOAD_PREFIX`` / ``TRANSCRIPTS_PREFIX`` – key prefixes inside the bucket.
* ``DEFAULT_LANGUAGE`` – BCP-47 code used when a request does not send one.
* ``JOB_PREFIX`` – namespace prefix for generated job ids.
* ``POLL_ATTEMPTS`` / ``POLL_INTERVAL`` – status polling budget.
* ``FETCH_TIMEOUT`` – timeout in seconds for downloading the transcript.
* ``PORT`` – port for the development server.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class Settings:
    bucket: Optional[str] = None
    location: str = "asia-south1"
    upload_prefix: str = "uploads/"
    transcripts_prefix: str = "transcripts/"
    default_language: str = "hi-IN"
    job_prefix: str = "bharat_stt"
    poll_attempts: int = 25
    poll_interval: float = 2.0
    fetch_timeout: float = 30.0
    port: int = 5000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            bucket=env.get("STT_BUCKET") or None,
            location=env.get("STT_LOCATION", cls.location),
            upload_prefix=env.get("UPLOAD_PREFIX", cls.upload_prefix),
            transcripts_prefix=env.get("TRANSCRIPTS_PREFIX", cls.transcripts_prefix),
            default_language=env.get("DEFAULT_LANGUAGE", cls.default_language),
            job_prefix=env.get("JOB_PREFIX", cls.job_prefix),
            poll_attempts=int(env.get("POLL_ATTEMPTS", cls.poll_attempts)),
            poll_interval=float(env.get("POLL_INTERVAL", cls.poll_interval)),
            fetch_timeout=float(env.get("FETCH_TIMEOUT", cls.fetch_timeout)),
            port=int(env.get("PORT", cls.port)),
        )

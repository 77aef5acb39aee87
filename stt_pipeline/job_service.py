"""
Google Speech-to-Text job service.

Jobs are started with ``long_running_recognize`` and the recognition result
is written by the service itself to ``gs://<bucket>/<prefix><job_id>.json``.
The service hands back an operation name, which is what the status check
reads; the job id only determines where the result lands.

Usage::

    from google.cloud import speech_v1p1beta1 as speech
    from stt_pipeline.job_service import SpeechJobService

    service = SpeechJobService(speech.SpeechClient(), "my-bucket")
    name = service.start(request)
    snapshot = service.status(request.job_id, name)
"""

import json
import logging

from google.cloud import speech_v1p1beta1 as speech

from .models import JobRequest, JobSnapshot, JobStatus

logger = logging.getLogger(__name__)

_AudioEncoding = speech.RecognitionConfig.AudioEncoding

# WAV and MP4 carry their own headers; the recogniser reads them.
AUDIO_ENCODINGS = {
    "webm": _AudioEncoding.WEBM_OPUS,
    "ogg": _AudioEncoding.OGG_OPUS,
    "mp3": _AudioEncoding.MP3,
    "wav": _AudioEncoding.ENCODING_UNSPECIFIED,
    "mp4": _AudioEncoding.ENCODING_UNSPECIFIED,
}

# Opus streams from browsers are always 48 kHz.
OPUS_SAMPLE_RATE = 48_000

UNKNOWN_FAILURE = "Unknown failure"


class SpeechJobService:
    """Start recognition jobs and report their status."""

    def __init__(
        self,
        client: speech.SpeechClient,
        output_bucket: str,
        output_prefix: str = "transcripts/",
    ) -> None:
        self._client = client
        self.output_bucket = output_bucket
        self.output_prefix = output_prefix

    def output_uri_for(self, job_id: str) -> str:
        return f"gs://{self.output_bucket}/{self.output_prefix}{job_id}.json"

    def _recognition_config(self, request: JobRequest) -> speech.RecognitionConfig:
        encoding = AUDIO_ENCODINGS.get(
            request.encoding, _AudioEncoding.ENCODING_UNSPECIFIED
        )
        config = speech.RecognitionConfig(
            encoding=encoding,
            language_code=request.language_code,
            enable_automatic_punctuation=True,
            diarization_config=speech.SpeakerDiarizationConfig(
                enable_speaker_diarization=request.speaker_labels,
                max_speaker_count=request.max_speakers,
            ),
        )
        if encoding in (_AudioEncoding.WEBM_OPUS, _AudioEncoding.OGG_OPUS):
            config.sample_rate_hertz = OPUS_SAMPLE_RATE
        return config

    def start(self, request: JobRequest) -> str:
        """Submit a recognition job and return the operation name."""
        recognize_request = speech.LongRunningRecognizeRequest(
            config=self._recognition_config(request),
            audio=speech.RecognitionAudio(uri=request.media_uri),
            output_config=speech.TranscriptOutputConfig(
                gcs_uri=self.output_uri_for(request.job_id)
            ),
        )
        operation = self._client.long_running_recognize(request=recognize_request)
        name = operation.operation.name
        logger.info(
            json.dumps(
                {
                    "event": "job_started",
                    "jobId": request.job_id,
                    "operation": name,
                    "language": request.language_code,
                    "encoding": request.encoding,
                }
            )
        )
        return name

    def status(self, job_id: str, operation_name: str) -> JobSnapshot:
        """Read the current state of a job.

        A running operation maps to ``IN_PROGRESS``; a finished one to
        ``FAILED`` when it carries an error, otherwise ``COMPLETED`` with the
        output location as the result reference.
        """
        operation = self._client.get_operation(request={"name": operation_name})
        if not operation.done:
            return JobSnapshot(JobStatus.IN_PROGRESS)
        if operation.HasField("error"):
            return JobSnapshot(
                JobStatus.FAILED,
                failure_reason=operation.error.message or UNKNOWN_FAILURE,
            )
        return JobSnapshot(JobStatus.COMPLETED, result_uri=self.output_uri_for(job_id))

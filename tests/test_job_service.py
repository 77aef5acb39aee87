from types import SimpleNamespace

from google.cloud import speech_v1p1beta1 as speech
from google.longrunning import operations_pb2
from google.rpc import status_pb2

from stt_pipeline.job_service import SpeechJobService
from stt_pipeline.models import JobRequest, JobStatus


class FakeSpeechClient:
    def __init__(self, operation=None):
        self.requests = []
        self.operation_requests = []
        self.operation = operation

    def long_running_recognize(self, request=None):
        self.requests.append(request)
        return SimpleNamespace(operation=SimpleNamespace(name="operations/123"))

    def get_operation(self, request=None):
        self.operation_requests.append(request)
        return self.operation


def make_request(encoding="webm"):
    return JobRequest(
        job_id="bharat_stt_1",
        language_code="hi-IN",
        encoding=encoding,
        media_uri="gs://stt/uploads/bharat_stt_1_clip.webm",
    )


def test_start_submits_long_running_job():
    client = FakeSpeechClient()
    service = SpeechJobService(client, "stt")

    name = service.start(make_request())

    assert name == "operations/123"
    sent = client.requests[0]
    assert sent.audio.uri == "gs://stt/uploads/bharat_stt_1_clip.webm"
    assert sent.config.language_code == "hi-IN"
    assert sent.config.encoding == speech.RecognitionConfig.AudioEncoding.WEBM_OPUS
    assert sent.config.sample_rate_hertz == 48000
    assert sent.config.diarization_config.enable_speaker_diarization is False
    assert sent.output_config.gcs_uri == "gs://stt/transcripts/bharat_stt_1.json"


def test_wav_leaves_encoding_to_the_header():
    client = FakeSpeechClient()
    SpeechJobService(client, "stt").start(make_request("wav"))

    config = client.requests[0].config
    assert config.encoding == speech.RecognitionConfig.AudioEncoding.ENCODING_UNSPECIFIED
    assert config.sample_rate_hertz == 0


def test_output_prefix_is_configurable():
    service = SpeechJobService(FakeSpeechClient(), "stt", output_prefix="out/")
    assert service.output_uri_for("j1") == "gs://stt/out/j1.json"


def test_running_operation_is_in_progress():
    client = FakeSpeechClient(operations_pb2.Operation(name="operations/123", done=False))
    snapshot = SpeechJobService(client, "stt").status("j1", "operations/123")

    assert snapshot.status is JobStatus.IN_PROGRESS
    assert client.operation_requests == [{"name": "operations/123"}]


def test_failed_operation_carries_reason():
    operation = operations_pb2.Operation(
        name="operations/123",
        done=True,
        error=status_pb2.Status(code=3, message="Bad audio"),
    )
    snapshot = SpeechJobService(FakeSpeechClient(operation), "stt").status("j1", "operations/123")

    assert snapshot.status is JobStatus.FAILED
    assert snapshot.failure_reason == "Bad audio"


def test_failed_operation_without_message():
    operation = operations_pb2.Operation(done=True, error=status_pb2.Status(code=13))
    snapshot = SpeechJobService(FakeSpeechClient(operation), "stt").status("j1", "op")

    assert snapshot.failure_reason == "Unknown failure"


def test_finished_operation_points_at_output():
    operation = operations_pb2.Operation(name="operations/123", done=True)
    snapshot = SpeechJobService(FakeSpeechClient(operation), "stt").status("j1", "operations/123")

    assert snapshot.status is JobStatus.COMPLETED
    assert snapshot.result_uri == "gs://stt/transcripts/j1.json"

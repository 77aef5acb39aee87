import json
from unittest.mock import Mock

import pytest
import requests
from google.api_core import exceptions as gcloud_exceptions

from stt_pipeline.errors import FetchError
from stt_pipeline.result_fetcher import ResultFetcher, extract_text


class FakeBlob:
    def __init__(self, data=None, error=None):
        self.data = data
        self.error = error

    def download_as_text(self):
        if self.error:
            raise self.error
        return self.data


class FakeBucket:
    def __init__(self):
        self.blobs = {}

    def blob(self, name):
        return self.blobs.setdefault(name, FakeBlob())


class FakeStorageClient:
    def __init__(self):
        self.buckets = {}

    def bucket(self, name):
        return self.buckets.setdefault(name, FakeBucket())


def test_extract_consolidated_transcript():
    payload = {"results": {"transcripts": [{"transcript": "  नमस्ते दुनिया \n"}]}}
    assert extract_text(payload) == "नमस्ते दुनिया"


def test_extract_uses_first_transcript_only():
    payload = {"results": {"transcripts": [{"transcript": "one"}, {"transcript": "two"}]}}
    assert extract_text(payload) == "one"


def test_extract_speech_segments():
    payload = {
        "results": [
            {"alternatives": [{"transcript": "hello"}, {"transcript": "hallo"}]},
            {"alternatives": []},
            {"alternatives": [{"transcript": " world "}]},
        ]
    }
    assert extract_text(payload) == "hello world"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        None,
        [],
        "text",
        {"results": None},
        {"results": {}},
        {"results": {"transcripts": []}},
        {"results": {"transcripts": [{}]}},
        {"results": {"transcripts": ["oops"]}},
        {"results": {"transcripts": [{"transcript": None}]}},
        {"results": [{}]},
        {"results": [{"alternatives": {"transcript": "x"}}]},
        {"results": [{"alternatives": "x"}]},
        {"results": "x"},
    ],
)
def test_missing_fields_give_empty_string(payload):
    assert extract_text(payload) == ""


def test_fetch_from_cloud_storage():
    client = FakeStorageClient()
    client.bucket("out").blob("transcripts/j1.json").data = json.dumps(
        {"results": [{"alternatives": [{"transcript": "hi"}]}]}
    )
    fetcher = ResultFetcher(client)

    assert fetcher.fetch("gs://out/transcripts/j1.json") == "hi"


def test_fetch_over_https():
    response = Mock(text=json.dumps({"results": {"transcripts": [{"transcript": "hi"}]}}))
    session = Mock(get=Mock(return_value=response))
    fetcher = ResultFetcher(FakeStorageClient(), session=session, timeout=5)

    assert fetcher.fetch("https://example.com/t.json") == "hi"
    session.get.assert_called_once_with("https://example.com/t.json", timeout=5)
    response.raise_for_status.assert_called_once_with()


def test_http_error_is_fetch_error():
    response = Mock()
    response.raise_for_status.side_effect = requests.HTTPError("403 Forbidden")
    session = Mock(get=Mock(return_value=response))
    fetcher = ResultFetcher(FakeStorageClient(), session=session)

    with pytest.raises(FetchError):
        fetcher.fetch("https://example.com/t.json")


def test_connection_error_is_fetch_error():
    session = Mock(get=Mock(side_effect=requests.ConnectionError("refused")))
    fetcher = ResultFetcher(FakeStorageClient(), session=session)

    with pytest.raises(FetchError):
        fetcher.fetch("https://example.com/t.json")


def test_storage_error_is_fetch_error():
    client = FakeStorageClient()
    client.bucket("out").blob("missing.json").error = gcloud_exceptions.NotFound("no such object")
    fetcher = ResultFetcher(client)

    with pytest.raises(FetchError):
        fetcher.fetch("gs://out/missing.json")


def test_invalid_json_is_fetch_error():
    client = FakeStorageClient()
    client.bucket("out").blob("bad.json").data = "<html>not json</html>"
    fetcher = ResultFetcher(client)

    with pytest.raises(FetchError):
        fetcher.fetch("gs://out/bad.json")


@pytest.mark.parametrize("reference", [None, "", "ftp://host/t.json", "/tmp/t.json"])
def test_unusable_reference_is_fetch_error(reference):
    fetcher = ResultFetcher(FakeStorageClient())

    with pytest.raises(FetchError):
        fetcher.fetch(reference)

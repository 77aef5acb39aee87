"""
Transcript retrieval.

Finished jobs leave their result as a JSON document somewhere reachable by
URI: a ``gs://`` object written by Speech-to-Text, or an ``https://`` link
handed out by a hosted service.  :class:`ResultFetcher` reads the document
and :func:`extract_text` pulls the transcript out of it.
"""

import json
import logging
from types import ModuleType
from typing import Any, List, Union
from urllib.parse import urlparse

import requests
from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from .errors import FetchError

logger = logging.getLogger(__name__)


def _first_transcript(results: dict) -> str:
    transcripts = results.get("transcripts")
    if not isinstance(transcripts, list) or not transcripts:
        return ""
    first = transcripts[0]
    if not isinstance(first, dict):
        return ""
    text = first.get("transcript")
    return text if isinstance(text, str) else ""


def _joined_alternatives(results: list) -> str:
    pieces: List[str] = []
    for chunk in results:
        if not isinstance(chunk, dict):
            continue
        alternatives = chunk.get("alternatives")
        if not isinstance(alternatives, list) or not alternatives:
            continue
        if not isinstance(alternatives[0], dict):
            continue
        text = alternatives[0].get("transcript")
        if isinstance(text, str) and text.strip():
            pieces.append(text.strip())
    return " ".join(pieces)


def extract_text(payload: Any) -> str:
    """Return the transcript text from a result payload.

    Two layouts are understood:

    * ``{"results": {"transcripts": [{"transcript": "..."}]}}`` – a single
      consolidated transcript.
    * ``{"results": [{"alternatives": [{"transcript": "..."}]}, ...]}`` – the
      Speech-to-Text response, one entry per recognised segment.  The first
      (most probable) alternative of each segment is used.

    Missing fields at any level yield an empty string.
    """
    if not isinstance(payload, dict):
        return ""
    results = payload.get("results")
    if isinstance(results, dict):
        return _first_transcript(results).strip()
    if isinstance(results, list):
        return _joined_alternatives(results).strip()
    return ""


class ResultFetcher:
    """Read a transcript document from a ``gs://`` or ``http(s)://`` URI."""

    def __init__(
        self,
        storage_client: storage.Client,
        session: Union[requests.Session, ModuleType] = requests,
        timeout: float = 30,
    ) -> None:
        self._storage = storage_client
        self._session = session
        self.timeout = timeout

    def _download(self, reference: str) -> str:
        parsed = urlparse(reference)
        if parsed.scheme == "gs":
            blob = self._storage.bucket(parsed.netloc).blob(parsed.path.lstrip("/"))
            try:
                return blob.download_as_text()
            except (
                gcloud_exceptions.GoogleAPIError,
                auth_exceptions.GoogleAuthError,
                OSError,
            ) as exc:
                raise FetchError(f"Failed to read {reference}: {exc}") from exc
        if parsed.scheme in ("http", "https"):
            try:
                response = self._session.get(reference, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                raise FetchError(f"Failed to read {reference}: {exc}") from exc
            return response.text
        raise FetchError(f"Unsupported result reference: {reference!r}")

    def fetch(self, reference: str) -> str:
        """Download the result document at ``reference`` and return its text.

        Raises:
            FetchError: If the document cannot be read or is not valid JSON.
        """
        if not reference:
            raise FetchError("Job completed without a result reference")
        body = self._download(reference)
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise FetchError(f"Result at {reference} is not valid JSON") from exc
        text = extract_text(payload)
        logger.info(
            json.dumps({"event": "transcript_fetched", "uri": reference, "chars": len(text)})
        )
        return text

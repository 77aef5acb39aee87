"""
Cloud Storage staging for uploaded audio.

The transcription service reads its input from a bucket, so each upload is
written to ``gs://<bucket>/<key>`` for the lifetime of one job and removed
again afterwards.
"""

import json
import logging
from typing import Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from .errors import StoreError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "audio/webm"

_STORAGE_ERRORS = (
    gcloud_exceptions.GoogleAPIError,
    auth_exceptions.GoogleAuthError,
    OSError,
)


class GcsMediaStore:
    """Key-addressed put/delete of audio blobs in a single bucket."""

    def __init__(self, client: storage.Client, bucket_name: str) -> None:
        self._client = client
        self.bucket_name = bucket_name

    def _blob(self, key: str) -> storage.Blob:
        return self._client.bucket(self.bucket_name).blob(key)

    def reference(self, key: str) -> str:
        return f"gs://{self.bucket_name}/{key}"

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Upload ``data`` under ``key`` and return its ``gs://`` reference.

        Raises:
            StoreError: If the upload fails for any reason.
        """
        try:
            self._blob(key).upload_from_string(
                data, content_type=content_type or DEFAULT_CONTENT_TYPE
            )
        except _STORAGE_ERRORS as exc:
            raise StoreError(f"Failed to stage {key}: {exc}") from exc
        logger.info(
            json.dumps({"event": "blob_staged", "key": key, "size": len(data)})
        )
        return self.reference(key)

    def delete(self, key: str) -> None:
        try:
            self._blob(key).delete()
        except _STORAGE_ERRORS as exc:
            raise StoreError(f"Failed to delete {key}: {exc}") from exc
        logger.info(json.dumps({"event": "blob_deleted", "key": key}))

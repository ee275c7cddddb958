"""
Blob storage abstraction for an S3-compatible object store and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol
import json

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class StorageClient(Protocol):
    """Defines the operations the record stores need from object storage."""

    def upload_json(self, path: str, payload: dict) -> None:
        ...

    def get_bytes(self, path: str) -> bytes:
        """Return the object body; raise FileNotFoundError if it does not exist."""
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def upload_json(self, path: str, payload: dict) -> None:
        # Round-trip through JSON to mimic real upload behavior
        self.stored_objects[path] = json.loads(json.dumps(payload, default=str))

    def get_bytes(self, path: str) -> bytes:
        stored = self.stored_objects.get(path)
        if stored is None:
            raise FileNotFoundError(path)
        if isinstance(stored, bytes):
            return stored
        return json.dumps(stored, default=str).encode("utf-8")


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client (AWS S3, Cloudflare R2, MinIO, ...).
    """

    bucket: str
    region: str = ""
    endpoint: Optional[str] = None
    access_key_id: str = ""
    secret_access_key: str = ""
    prefix: str = ""

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def _key(self, path: str) -> str:
        if not self.prefix:
            return path
        return f"{self.prefix.rstrip('/')}/{path}"

    def upload_json(self, path: str, payload: dict) -> None:
        body = json.dumps(payload, default=str, indent=2).encode("utf-8")
        self._client.put_object(
            Bucket=self.bucket,
            Key=self._key(path),
            Body=body,
            ContentType="application/json",
        )

    def get_bytes(self, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self._key(path))
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                raise FileNotFoundError(path) from exc
            raise
        return response["Body"].read()

"""
Image storage for S3-compatible buckets, the local public directory and in-memory testing.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol
from uuid import uuid4

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")
UPLOADS_PREFIX = "/uploads/"
OBJECT_PREFIX = "products"


class ImageRejectedError(ValueError):
    """Raised when an upload is not an acceptable image."""


def validate_image(
    filename: str, content_type: Optional[str], size: int, max_bytes: int
) -> None:
    ext = os.path.splitext(filename or "")[1].lower()
    if not (
        ALLOWED_IMAGE_TYPES.search(ext)
        and ALLOWED_IMAGE_TYPES.search(content_type or "")
    ):
        raise ImageRejectedError("Only image files are allowed!")
    if size > max_bytes:
        raise ImageRejectedError("File too large")


def _object_name(filename: str) -> str:
    return f"{uuid4()}{os.path.splitext(filename or '')[1]}"


class ImageStorage(Protocol):
    """Defines the operations the API needs from image storage."""

    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        ...

    def delete(self, reference: str) -> None:
        ...


@dataclass
class LocalImageStorage:
    """Stores uploads under `<public_dir>/uploads`, served statically as /uploads/..."""

    public_dir: str

    @property
    def uploads_dir(self) -> Path:
        return Path(self.public_dir) / UPLOADS_PREFIX.strip("/")

    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        name = _object_name(filename)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        (self.uploads_dir / name).write_bytes(data)
        return f"{UPLOADS_PREFIX}{name}"

    def delete(self, reference: str) -> None:
        # Anything outside /uploads/ (e.g. an external URL) is not ours to remove.
        if not reference or not reference.startswith(UPLOADS_PREFIX):
            return
        target = self.uploads_dir / os.path.basename(reference)
        try:
            os.remove(target)
        except FileNotFoundError:
            logger.debug("Upload %s already gone", target)


@dataclass
class InMemoryImageStorage:
    """Test double for image storage."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = field(default_factory=dict)

    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        key = f"{OBJECT_PREFIX}/{_object_name(filename)}"
        self.stored_objects[key] = data
        return f"{self.base_url}/{key}"

    def delete(self, reference: str) -> None:
        if not reference:
            return
        self.stored_objects.pop("/".join(reference.split("/")[-2:]), None)


@dataclass
class S3ImageStorage:
    """
    S3-compatible storage client for product and course images.

    Objects are written under `products/<uuid><ext>` and referenced by
    public URL, so the bucket must allow anonymous reads.
    """

    bucket: str
    access_key_id: str
    secret_access_key: str
    region: str = ""
    endpoint: str = ""
    public_url: str = ""

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    @property
    def base_url(self) -> str:
        if self.public_url:
            return self.public_url.rstrip("/")
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}"
        return f"https://{self.bucket}.s3.amazonaws.com"

    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        key = f"{OBJECT_PREFIX}/{_object_name(filename)}"
        self._client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        return f"{self.base_url}/{key}"

    def delete(self, reference: str) -> None:
        if not reference:
            return
        key = "/".join(reference.split("/")[-2:])
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Could not delete image %s: %s", key, exc)

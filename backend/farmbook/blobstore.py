# Overview: Attachment storage behind a narrow put/get/delete interface.

"""
Blob Store Adapter

Sale receipts and note pictures are stored outside the relational database,
addressed by a caller-chosen key. The database only ever holds the key.

Backends:
- S3BlobStore: S3-compatible bucket via boto3 (production)
- LocalBlobStore: one file per key under a directory (default, development)
- MemoryBlobStore: process-local dict, used by tests

INVARIANTS:
- Keys match KEY_PATTERN, so a key can never address a path outside the
  storage root.
- delete() is idempotent: deleting an absent key is not an error.
- get() of an absent key raises BlobNotFoundError.
"""

from __future__ import annotations

import os
import re
import threading
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator

import boto3
from botocore.exceptions import ClientError
from flask import current_app
from werkzeug.utils import secure_filename


DEFAULT_CONTENT_TYPE = "image/jpeg"
KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,254}$")
MAX_FILENAME_LENGTH = 100


class BlobStoreError(Exception):
    """Base error for blob storage failures."""


class BlobNotFoundError(BlobStoreError, LookupError):
    """Raised when a key has no stored blob."""


class InvalidBlobKeyError(BlobStoreError, ValueError):
    """Raised when a key contains characters outside KEY_PATTERN."""


@dataclass(frozen=True)
class Blob:
    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class Attachment:
    """An uploaded file on its way to the blob store."""
    filename: str
    data: bytes
    content_type: str | None = None


def validate_key(key: str) -> str:
    if not isinstance(key, str) or not KEY_PATTERN.match(key):
        raise InvalidBlobKeyError(f"Invalid blob key: {key!r}")
    return key


def make_blob_key(filename: str | None, prefix: str = "") -> str:
    """
    Build a globally unique key: <prefix><unix-ms>-<random>-<safe filename>.

    The random component keeps two uploads of the same filename within the
    same millisecond from colliding.
    """
    safe_name = secure_filename(filename or "") or "upload"
    if len(safe_name) > MAX_FILENAME_LENGTH:
        root, ext = os.path.splitext(safe_name)
        safe_name = root[: MAX_FILENAME_LENGTH - len(ext)] + ext
    millis = int(time.time() * 1000)
    return validate_key(f"{prefix}{millis}-{uuid.uuid4().hex[:12]}-{safe_name}")


class BlobStore(ABC):
    """Narrow object-store interface used by the services."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> Blob:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> Iterator[str]:
        ...

    def exists(self, key: str) -> bool:
        try:
            self.get(key)
        except BlobNotFoundError:
            return False
        return True


class MemoryBlobStore(BlobStore):
    def __init__(self) -> None:
        self._blobs: dict[str, Blob] = {}
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        validate_key(key)
        with self._lock:
            self._blobs[key] = Blob(bytes(data), content_type or DEFAULT_CONTENT_TYPE)

    def get(self, key: str) -> Blob:
        validate_key(key)
        with self._lock:
            blob = self._blobs.get(key)
        if blob is None:
            raise BlobNotFoundError(key)
        return blob

    def delete(self, key: str) -> None:
        validate_key(key)
        with self._lock:
            self._blobs.pop(key, None)

    def keys(self) -> Iterator[str]:
        with self._lock:
            snapshot = sorted(self._blobs)
        return iter(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._blobs.clear()


class LocalBlobStore(BlobStore):
    """
    Stores each blob as <root>/<key>, with its content type in a
    hidden sidecar file <root>/.<key>.type.

    Keys never start with a dot, so sidecars and temp files cannot
    collide with blob names.
    """

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.root, validate_key(key))

    def _type_path(self, key: str) -> str:
        return os.path.join(self.root, f".{validate_key(key)}.type")

    def _write_atomic(self, path: str, data: bytes) -> None:
        tmp = os.path.join(self.root, f".tmp-{uuid.uuid4().hex}")
        with open(tmp, "wb") as f:
            f.write(data)
        os.replace(tmp, path)

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self._write_atomic(self._type_path(key), (content_type or DEFAULT_CONTENT_TYPE).encode("utf-8"))
        self._write_atomic(self._path(key), bytes(data))

    def get(self, key: str) -> Blob:
        try:
            with open(self._path(key), "rb") as f:
                data = f.read()
        except FileNotFoundError:
            raise BlobNotFoundError(key)
        try:
            with open(self._type_path(key), "rb") as f:
                content_type = f.read().decode("utf-8").strip() or DEFAULT_CONTENT_TYPE
        except FileNotFoundError:
            content_type = DEFAULT_CONTENT_TYPE
        return Blob(data, content_type)

    def delete(self, key: str) -> None:
        for path in (self._path(key), self._type_path(key)):
            try:
                os.remove(path)
            except FileNotFoundError:
                pass

    def keys(self) -> Iterator[str]:
        for name in sorted(os.listdir(self.root)):
            if name.startswith("."):
                continue
            if os.path.isfile(os.path.join(self.root, name)):
                yield name


class S3BlobStore(BlobStore):
    """
    Blobs in an S3-compatible bucket (AWS S3, Cloudflare R2, MinIO).

    The object key is the blob key and the content type is stored as the
    object's ContentType.
    """

    NOT_FOUND_CODES = ("NoSuchKey", "404", "NotFound")

    def __init__(self, bucket: str, client=None, *, endpoint_url: str | None = None,
                 region_name: str | None = None) -> None:
        if not bucket:
            raise ValueError("BLOB_STORE_BUCKET is required for the s3 backend")
        self.bucket = bucket
        self.client = client or boto3.client("s3", endpoint_url=endpoint_url, region_name=region_name)

    def _is_not_found(self, error: ClientError) -> bool:
        return error.response.get("Error", {}).get("Code") in self.NOT_FOUND_CODES

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self.client.put_object(
            Bucket=self.bucket,
            Key=validate_key(key),
            Body=bytes(data),
            ContentType=content_type or DEFAULT_CONTENT_TYPE,
        )

    def get(self, key: str) -> Blob:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=validate_key(key))
        except ClientError as e:
            if self._is_not_found(e):
                raise BlobNotFoundError(key)
            raise
        return Blob(obj["Body"].read(), obj.get("ContentType") or DEFAULT_CONTENT_TYPE)

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=validate_key(key))
        except ClientError as e:
            if self._is_not_found(e):
                return False
            raise
        return True

    def delete(self, key: str) -> None:
        # DeleteObject succeeds for absent keys
        self.client.delete_object(Bucket=self.bucket, Key=validate_key(key))

    def keys(self) -> Iterator[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket):
            for item in page.get("Contents", []):
                yield item["Key"]


def create_blob_store(app) -> BlobStore:
    """Build the configured backend and register it on the app."""
    backend = (app.config.get("BLOB_STORE_BACKEND") or "local").lower()
    if backend == "s3":
        store: BlobStore = S3BlobStore(
            app.config.get("BLOB_STORE_BUCKET"),
            endpoint_url=app.config.get("BLOB_STORE_ENDPOINT_URL"),
            region_name=app.config.get("BLOB_STORE_REGION"),
        )
    elif backend == "memory":
        store = MemoryBlobStore()
    elif backend == "local":
        root = app.config.get("BLOB_STORE_PATH") or os.path.join(app.instance_path, "blobs")
        store = LocalBlobStore(root)
    else:
        raise ValueError(f"Unknown BLOB_STORE_BACKEND: {backend}")

    app.extensions["blob_store"] = store
    return store


def get_blob_store() -> BlobStore:
    return current_app.extensions["blob_store"]

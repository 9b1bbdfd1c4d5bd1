# draftpress/storage/blob_store.py
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from draftpress.domain.exceptions import AssetCleanupFailed, StorageUnavailable


class BlobStore(ABC):
    """Binary storage addressed by relative storage paths."""

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        ...

    @abstractmethod
    def remove(self, paths: Iterable[str]) -> int:
        """Delete ``paths``; missing ones count as removed. Raises AssetCleanupFailed."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def public_url(self, path: str) -> str:
        ...


class LocalBlobStore(BlobStore):
    def __init__(self, root: str, base_url: str = "/uploads"):
        self.root = root
        self.base_url = base_url.rstrip("/")

    def _full_path(self, path: str) -> str:
        full_path = os.path.abspath(os.path.join(self.root, path))
        if not full_path.startswith(os.path.abspath(self.root) + os.sep):
            raise ValueError(f"Storage path escapes the upload folder: {path}")
        return full_path

    def put(self, path, data, content_type=None):
        full_path = self._full_path(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as handle:
            handle.write(data)
        return path

    def remove(self, paths):
        removed = 0
        for path in paths:
            try:
                full_path = self._full_path(path)
            except ValueError as exc:
                raise AssetCleanupFailed(str(exc)) from exc
            try:
                os.remove(full_path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise AssetCleanupFailed(f"Failed to delete file {path}: {exc}") from exc
            removed += 1
        return removed

    def exists(self, path):
        return os.path.exists(self._full_path(path))

    def public_url(self, path):
        return f"{self.base_url}/{path}"


class S3BlobStore(BlobStore):
    def __init__(
        self,
        *,
        bucket: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.public_base_url = (public_base_url or "").rstrip("/")
        self._s3 = client or boto3.session.Session(region_name=region).client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=BotoConfig(retries={"max_attempts": 5, "mode": "standard"}),
        )

    def put(self, path, data, content_type=None):
        kwargs = {"Bucket": self.bucket, "Key": path, "Body": data}
        if content_type:
            kwargs["ContentType"] = content_type
        try:
            self._s3.put_object(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailable(f"Upload of {path} failed: {exc}") from exc
        return path

    def remove(self, paths):
        keys: List[str] = list(paths)
        if not keys:
            return 0
        try:
            response = self._s3.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
            )
        except (ClientError, BotoCoreError) as exc:
            raise AssetCleanupFailed(f"Failed to delete {len(keys)} objects: {exc}") from exc

        errors = response.get("Errors") or []
        if errors:
            failed = ", ".join(error.get("Key", "?") for error in errors)
            raise AssetCleanupFailed(f"Failed to delete objects: {failed}")
        return len(keys)

    def exists(self, path):
        try:
            self._s3.head_object(Bucket=self.bucket, Key=path)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageUnavailable(f"Cannot check {path}: {exc}") from exc
        return True

    def public_url(self, path):
        if self.public_base_url:
            return f"{self.public_base_url}/{path}"
        return f"https://{self.bucket}.s3.amazonaws.com/{path}"


def create_blob_store(config) -> BlobStore:
    backend = config.get("BLOB_STORE", "local")

    if backend == "local":
        return LocalBlobStore(
            config.get("UPLOAD_FOLDER", "uploads"),
            config.get("BLOB_PUBLIC_BASE_URL", "/uploads"),
        )

    if backend == "s3":
        if not config.get("S3_BUCKET"):
            raise RuntimeError("S3_BUCKET must be set when BLOB_STORE=s3")
        return S3BlobStore(
            bucket=config["S3_BUCKET"],
            region=config.get("S3_REGION"),
            endpoint_url=config.get("S3_ENDPOINT_URL"),
            public_base_url=config.get("BLOB_PUBLIC_BASE_URL"),
        )

    raise RuntimeError(f"Unknown BLOB_STORE backend: {backend}")

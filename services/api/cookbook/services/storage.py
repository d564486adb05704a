import io
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Protocol

import boto3

from ..settings import settings

logger = logging.getLogger("cookbook.storage")


class BlobStore(Protocol):
    def put_bytes(self, key: str, data: bytes, content_type: str = "image/png") -> str: ...

    def healthcheck(self) -> bool: ...


class LocalStorage:
    """Blob store on local disk, served under ``public_prefix``."""

    def __init__(self, root: str | Path, public_prefix: str = "/media"):
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    def _path(self, key: str) -> Path:
        # Ensure strict path safety (simple check)
        if ".." in key or key.startswith("/"):
            raise ValueError(f"Invalid storage key: {key}")
        return self.root / key

    def put_bytes(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        """
        Save bytes to local disk.
        key: recipes/{recipe_id}/hero/{image_id}.png
        Returns: Public relative URL
        """
        file_path = self._path(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(data)

        logger.info(f"Saved {len(data)} bytes to {file_path}")
        return f"{self.public_prefix}/{key}"

    def healthcheck(self) -> bool:
        self.root.mkdir(parents=True, exist_ok=True)
        if not os.access(self.root, os.W_OK):
            raise OSError(f"Media root {self.root} is not writable")
        return True


class S3CompatStore:
    """Blob store on any S3-compatible endpoint (AWS, R2, MinIO)."""

    def __init__(self, client, bucket: str, public_base_url: str):
        self.s3 = client
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls) -> "S3CompatStore":
        client = boto3.client(
            service_name="s3",
            endpoint_url=settings.object_store_endpoint,
            aws_access_key_id=settings.object_store_access_key_id,
            aws_secret_access_key=settings.object_store_secret_access_key,
            region_name=settings.object_store_region,
        )
        return cls(client, settings.object_store_bucket, settings.object_public_base_url)

    def put_bytes(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        self.s3.put_object(Bucket=self.bucket, Key=key, Body=io.BytesIO(data), ContentType=content_type)
        return f"{self.public_base_url}/{key}"

    def healthcheck(self) -> bool:
        # lightweight call; will raise if creds/endpoint wrong
        self.s3.list_objects_v2(Bucket=self.bucket, MaxKeys=1)
        return True


@lru_cache
def get_storage() -> BlobStore:
    if settings.storage_backend == "s3":
        return S3CompatStore.from_settings()
    return LocalStorage(settings.media_root, settings.media_public_prefix)

"""Blob stores: local disk and S3-compatible (mocked boto3 client)."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from cookbook.services.storage import LocalStorage, S3CompatStore


def test_local_put_bytes(tmp_path):
    store = LocalStorage(tmp_path, public_prefix="/media/")
    url = store.put_bytes("recipes/r1/hero/a.png", b"png")

    assert url == "/media/recipes/r1/hero/a.png"
    assert (tmp_path / "recipes/r1/hero/a.png").read_bytes() == b"png"


@pytest.mark.parametrize("key", ["../escape.png", "/etc/passwd"])
def test_local_rejects_unsafe_keys(tmp_path, key):
    store = LocalStorage(tmp_path)
    with pytest.raises(ValueError):
        store.put_bytes(key, b"x")


def test_local_healthcheck_creates_root(tmp_path):
    store = LocalStorage(tmp_path / "media")
    assert store.healthcheck() is True
    assert (tmp_path / "media").is_dir()


def test_local_healthcheck_fails_on_unwritable_root(tmp_path, monkeypatch):
    monkeypatch.setattr("cookbook.services.storage.os.access", lambda path, mode: False)
    with pytest.raises(OSError):
        LocalStorage(tmp_path).healthcheck()


def test_s3_put_bytes():
    s3 = MagicMock()
    store = S3CompatStore(s3, "bucket", "https://cdn.example.com/bucket/")

    url = store.put_bytes("recipes/r1/hero/a.png", b"png")

    assert url == "https://cdn.example.com/bucket/recipes/r1/hero/a.png"
    kwargs = s3.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "bucket"
    assert kwargs["Key"] == "recipes/r1/hero/a.png"
    assert kwargs["ContentType"] == "image/png"
    assert kwargs["Body"].read() == b"png"


def test_s3_healthcheck():
    s3 = MagicMock()
    assert S3CompatStore(s3, "bucket", "https://x").healthcheck() is True
    s3.list_objects_v2.assert_called_once_with(Bucket="bucket", MaxKeys=1)


def test_s3_healthcheck_propagates_client_error():
    s3 = MagicMock()
    s3.list_objects_v2.side_effect = ClientError(
        {"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "ListObjectsV2"
    )
    with pytest.raises(ClientError):
        S3CompatStore(s3, "bucket", "https://x").healthcheck()

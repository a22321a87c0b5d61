"""Tests for MinIO storage helpers."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from core import UploadError
from services import storage


class FakeS3Error(Exception):
    def __init__(self, code):
        super().__init__(code)
        self.code = code


@pytest.fixture(autouse=True)
def _reset_cache():
    storage.get_minio_client.cache_clear()
    yield
    storage.get_minio_client.cache_clear()


@pytest.fixture()
def local_image(tmp_path: Path) -> Path:
    path = tmp_path / "avatar.PNG"
    path.write_bytes(b"\x89PNG fake")
    return path


def test_get_minio_client_uses_settings(monkeypatch):
    mock_client = MagicMock(name="Minio")
    created_clients = []

    monkeypatch.setattr(storage.settings, "minio_secure", True)

    def fake_minio(endpoint, access_key, secret_key, secure):
        created_clients.append(
            {
                "endpoint": endpoint,
                "access_key": access_key,
                "secret_key": secret_key,
                "secure": secure,
            }
        )
        return mock_client

    monkeypatch.setattr(storage, "Minio", fake_minio)

    client = storage.get_minio_client()
    assert client is mock_client
    assert storage.get_minio_client() is client  # cached

    assert created_clients == [
        {
            "endpoint": storage.settings.minio_endpoint,
            "access_key": storage.settings.minio_access_key,
            "secret_key": storage.settings.minio_secret_key,
            "secure": True,
        }
    ]


def test_ensure_bucket_creates_when_missing():
    client = MagicMock()
    client.bucket_exists.return_value = False

    storage.ensure_bucket(client, "avatars")

    client.bucket_exists.assert_called_once_with("avatars")
    client.make_bucket.assert_called_once_with("avatars")


def test_ensure_bucket_handles_existing_race(monkeypatch):
    client = MagicMock()
    client.bucket_exists.return_value = False
    client.make_bucket.side_effect = FakeS3Error("BucketAlreadyExists")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    storage.ensure_bucket(client)

    client.make_bucket.assert_called_once_with(storage.settings.minio_bucket)


def test_upload_file_puts_object_under_fresh_key(local_image: Path):
    client = MagicMock()

    key = storage.upload_file(local_image, client=client, bucket="media", prefix="avatars/")

    assert key.startswith("avatars/")
    assert key.endswith(".png")
    client.fput_object.assert_called_once_with(
        "media",
        key,
        str(local_image),
        content_type="image/png",
    )
    assert local_image.exists()


def test_upload_file_removes_local_file_on_failure(monkeypatch, local_image: Path):
    client = MagicMock()
    client.fput_object.side_effect = FakeS3Error("AccessDenied")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    with pytest.raises(UploadError) as excinfo:
        storage.upload_file(local_image, client=client)

    assert excinfo.value.status_code == 502
    assert not local_image.exists()


def test_upload_file_rejects_missing_source(tmp_path: Path):
    client = MagicMock()

    with pytest.raises(UploadError):
        storage.upload_file(tmp_path / "missing.png", client=client)
    with pytest.raises(UploadError):
        storage.upload_file("", client=client)

    client.fput_object.assert_not_called()


def test_delete_object_ignores_missing_key_errors(monkeypatch):
    client = MagicMock()
    client.remove_object.side_effect = FakeS3Error("NoSuchKey")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    storage.delete_object("avatars/missing.jpg", client)

    client.remove_object.assert_called_once_with(
        storage.settings.minio_bucket,
        "avatars/missing.jpg",
    )


def test_delete_object_reraises_other_errors(monkeypatch):
    client = MagicMock()
    client.remove_object.side_effect = FakeS3Error("AccessDenied")
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)

    with pytest.raises(FakeS3Error):
        storage.delete_object("avatars/demo.jpg", client)


def test_minio_blob_storage_returns_public_url(local_image: Path):
    client = MagicMock()
    blob_storage = storage.MinioBlobStorage(
        client,
        bucket="media",
        base_url="https://cdn.test/",
        prefix="avatars",
    )

    blob = blob_storage.upload(local_image)

    assert blob.url == f"https://cdn.test/media/{blob.key}"
    assert blob_storage.key_for_url(blob.url) == blob.key
    assert blob_storage.key_for_url("https://elsewhere.test/a.png") is None


def test_minio_blob_storage_delete_targets_its_bucket():
    client = MagicMock()
    blob_storage = storage.MinioBlobStorage(client, bucket="media")

    blob_storage.delete("avatars/old.png")

    client.remove_object.assert_called_once_with("media", "avatars/old.png")

"""
Shared fixtures for the media storage tests.
"""
from typing import Dict, List, Optional

import httpx
import pytest
from google.api_core import exceptions as gcs_exceptions

from api.config import Settings
from api.main import create_application


@pytest.fixture
def media_dir(tmp_path):
    """Storage root inside a scratch directory."""
    return tmp_path / "media"


@pytest.fixture
def settings(media_dir) -> Settings:
    return Settings(
        MEDIA_STORAGE_DIR=str(media_dir),
        ACTIVE_PROFILES="",
        ENABLE_METRICS=False,
    )


@pytest.fixture
def app(settings):
    return create_application(settings)


@pytest.fixture
async def test_client(app):
    """Create test HTTP client."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class FakeBlob:
    """In-memory stand-in for ``google.cloud.storage.Blob``."""

    def __init__(self, bucket: "FakeBucket", name: str):
        self.bucket = bucket
        self.name = name

    def upload_from_string(self, data: bytes, content_type: Optional[str] = None) -> None:
        if self.bucket.fail_writes:
            raise gcs_exceptions.Forbidden("write denied")
        self.bucket.objects[self.name] = data

    def download_as_bytes(self) -> bytes:
        if self.name not in self.bucket.objects:
            raise gcs_exceptions.NotFound("no such object")
        return self.bucket.objects[self.name]

    def delete(self) -> None:
        if self.name not in self.bucket.objects:
            raise gcs_exceptions.NotFound("no such object")
        del self.bucket.objects[self.name]


class FakeBucket:
    def __init__(self, name: str):
        self.name = name
        self.objects: Dict[str, bytes] = {}
        self.fail_writes = False

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self, name)


class FakeGCSClient:
    """In-memory stand-in for ``google.cloud.storage.Client``."""

    def __init__(self, bucket_name: str):
        self.buckets = {bucket_name: FakeBucket(bucket_name)}
        self.list_calls: List[dict] = []
        self.closed = False

    def bucket(self, name: str) -> FakeBucket:
        return self.buckets[name]

    def list_blobs(self, bucket_or_name, prefix=None, delimiter=None, max_results=None):
        self.list_calls.append(
            {"prefix": prefix, "delimiter": delimiter, "max_results": max_results}
        )
        if bucket_or_name not in self.buckets:
            raise gcs_exceptions.NotFound("no such bucket")
        bucket = self.buckets[bucket_or_name]
        names = []
        for name in bucket.objects:
            if prefix and not name.startswith(prefix):
                continue
            rest = name[len(prefix or ""):]
            if delimiter and delimiter in rest:
                continue
            names.append(name)
        if max_results is not None:
            names = names[:max_results]
        return iter([FakeBlob(bucket, name) for name in names])

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_gcs_client():
    return FakeGCSClient("test-bucket")

"""
Tests for the Google Cloud Storage backend against an in-memory client.
"""
import asyncio
import time

import pytest
from google.api_core import exceptions as gcs_exceptions

from storage import create_storage_backend
from storage import gcs as gcs_module
from storage.exceptions import NotFoundError, StorageUnavailableError
from storage.gcs import GCSStorageBackend
from storage.keys import new_file_id


@pytest.fixture
def backend(fake_gcs_client):
    backend = GCSStorageBackend({"name": "gcs", "bucket": "test-bucket"})
    backend._client = fake_gcs_client
    return backend


@pytest.fixture
def objects(fake_gcs_client):
    return fake_gcs_client.buckets["test-bucket"].objects


class TestGCSStorageBackend:
    def test_requires_bucket(self):
        with pytest.raises(ValueError):
            GCSStorageBackend({"name": "gcs"})

    def test_factory(self):
        backend = create_storage_backend({"type": "gcs", "bucket": "b"})
        assert isinstance(backend, GCSStorageBackend)

    @pytest.mark.asyncio
    async def test_put(self, backend, objects):
        stored = await backend.put("hello.txt", b"hi")

        assert stored.key == f"{stored.id}__hello.txt"
        assert stored.url == f"https://storage.googleapis.com/test-bucket/{stored.id}__hello.txt"
        assert objects[stored.key] == b"hi"

    @pytest.mark.asyncio
    async def test_put_collects_chunks(self, backend, objects):
        async def chunks():
            yield b"he"
            yield b"llo"

        stored = await backend.put("greeting.txt", chunks())

        assert objects[stored.key] == b"hello"

    @pytest.mark.asyncio
    async def test_put_failure(self, backend, fake_gcs_client, objects):
        fake_gcs_client.buckets["test-bucket"].fail_writes = True

        with pytest.raises(StorageUnavailableError):
            await backend.put("denied.txt", b"x")

        assert objects == {}

    @pytest.mark.asyncio
    async def test_list_top_level_only(self, backend, objects):
        stored = await backend.put("top.txt", b"1")
        objects["folder/nested.txt"] = b"2"

        files = await backend.list()

        assert [(f.id, f.filename) for f in files] == [(stored.id, "top.txt")]

    @pytest.mark.asyncio
    async def test_list_missing_bucket(self, fake_gcs_client):
        backend = GCSStorageBackend({"bucket": "absent"})
        backend._client = fake_gcs_client

        assert await backend.list() == []

    @pytest.mark.asyncio
    async def test_get_by_id_prefix(self, backend, fake_gcs_client):
        stored = await backend.put("report.pdf", b"%PDF")

        obj = await backend.get(stored.id)

        assert obj.content == b"%PDF"
        assert obj.file.filename == "report.pdf"
        lookup = fake_gcs_client.list_calls[-1]
        assert lookup == {"prefix": f"{stored.id}__", "delimiter": "/", "max_results": 1}

    @pytest.mark.asyncio
    async def test_get_missing(self, backend):
        with pytest.raises(NotFoundError):
            await backend.get(new_file_id())

    @pytest.mark.asyncio
    async def test_delete(self, backend, objects):
        stored = await backend.put("gone.txt", b"x")

        assert await backend.delete(stored.id) is True
        assert objects == {}
        assert await backend.delete(stored.id) is False

    @pytest.mark.asyncio
    async def test_unavailable_bucket(self, backend, fake_gcs_client):
        def broken(*args, **kwargs):
            raise gcs_exceptions.ServiceUnavailable("down")

        fake_gcs_client.list_blobs = broken

        with pytest.raises(StorageUnavailableError):
            await backend.list()
        with pytest.raises(StorageUnavailableError):
            await backend.get(new_file_id())
        with pytest.raises(StorageUnavailableError):
            await backend.delete(new_file_id())

        status = await backend.get_status()
        assert status["available"] is False
        assert status["bucket"] == "test-bucket"

    @pytest.mark.asyncio
    async def test_concurrent_first_use_builds_one_client(self, monkeypatch, fake_gcs_client):
        created = []
        client_class = type(fake_gcs_client)

        def slow_client(project=None):
            time.sleep(0.05)
            client = client_class("test-bucket")
            created.append(client)
            return client

        monkeypatch.setattr(gcs_module.storage, "Client", slow_client)
        backend = GCSStorageBackend({"bucket": "test-bucket"})

        await asyncio.gather(*(backend.list() for _ in range(8)))

        assert len(created) == 1
        await backend.cleanup()
        assert created[0].closed is True

    @pytest.mark.asyncio
    async def test_cleanup_closes_client(self, backend, fake_gcs_client):
        await backend.cleanup()

        assert fake_gcs_client.closed is True
        assert backend._client is None

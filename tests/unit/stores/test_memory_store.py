"""
Tests for the in-memory object store
"""

import pytest

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.exceptions import ListingNotSupportedError, TransferCancelledError
from dirtransfer.stores.memory import InMemoryObjectStore
from dirtransfer.types import ItemProgress


class TestListing:
    @pytest.mark.asyncio
    async def test_pages_with_cursor(self, docs_store):
        first = await docs_store.list_objects_v2("b", "docs/")
        assert [e.key for e in first.entries] == ["docs/", "docs/a.txt"]
        assert first.next_cursor == "docs/a.txt"

        second = await docs_store.list_objects_v2("b", "docs/", first.next_cursor)
        assert [e.key for e in second.entries] == ["docs/b.txt"]
        assert second.next_cursor is None

    @pytest.mark.asyncio
    async def test_legacy_listing_uses_marker(self, docs_store):
        page = await docs_store.list_objects("b", "docs/", "docs/a.txt")
        assert [e.key for e in page.entries] == ["docs/b.txt"]
        assert docs_store.list_calls == 1

    @pytest.mark.asyncio
    async def test_v2_not_supported(self):
        store = InMemoryObjectStore(supports_v2=False)
        with pytest.raises(ListingNotSupportedError):
            await store.list_objects_v2("b", "")

    @pytest.mark.asyncio
    async def test_unknown_bucket_is_empty(self):
        page = await InMemoryObjectStore().list_objects_v2("nope", "")
        assert page.entries == []
        assert page.next_cursor is None


class TestTransfers:
    @pytest.mark.asyncio
    async def test_download_reports_chunks(self, docs_store, tmp_path):
        events: list[ItemProgress] = []
        destination = tmp_path / "nested" / "b.txt"

        size = await docs_store.download_object(
            "b", "docs/b.txt", destination, CancellationToken(), events.append
        )

        assert size == 200
        assert destination.read_bytes() == b"b" * 200
        assert sum(e.bytes_delta for e in events) == 200
        assert [e.is_complete for e in events] == [False, False, False, True]

    @pytest.mark.asyncio
    async def test_download_empty_object(self, store, tmp_path):
        store.put("b", "empty", b"")
        events: list[ItemProgress] = []

        await store.download_object("b", "empty", tmp_path / "e", CancellationToken(), events.append)

        assert events == [ItemProgress(bytes_delta=0, is_complete=True, total_bytes=0)]

    @pytest.mark.asyncio
    async def test_download_missing_key(self, store, tmp_path):
        with pytest.raises(FileNotFoundError):
            await store.download_object("b", "missing", tmp_path / "m", CancellationToken())

    @pytest.mark.asyncio
    async def test_download_honors_cancelled_token(self, docs_store, tmp_path):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(TransferCancelledError):
            await docs_store.download_object("b", "docs/a.txt", tmp_path / "a", token)

    @pytest.mark.asyncio
    async def test_upload(self, store, tmp_path):
        source = tmp_path / "up.bin"
        source.write_bytes(b"payload")
        events: list[ItemProgress] = []

        size = await store.upload_object("b", "k/up.bin", source, CancellationToken(), events.append)

        assert size == 7
        assert store.get("b", "k/up.bin") == b"payload"
        assert events[-1].is_complete

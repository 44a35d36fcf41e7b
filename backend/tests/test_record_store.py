"""
SnipKeep Backend — Record Store Unit Tests
===========================================

What:  Tests for whole-collection JSON load/save.
How:   Real files in pytest's tmp_path; no mocks except to force OS errors.

What we test:
    ✅ Missing file → empty collection, file created as []
    ✅ Save then load returns the same records, stored as a JSON array
    ✅ No temporary files left behind after a save
    ✅ mutation() saves on success and writes nothing on error
    ✅ Concurrent mutations don't lose updates
    ✅ Corrupt JSON / OS failures surface as StorageError
"""

import asyncio
import json
from unittest.mock import patch

import pytest

from snipkeep.exceptions import StorageError
from snipkeep.services.record_store import SNIPPETS, USERS, RecordStore


class TestLoad:
    """Tests for RecordStore.load."""

    @pytest.mark.asyncio
    async def test_missing_file_is_empty_and_initialized(self, record_store):
        """Missing file should read as [] and be created."""
        assert await record_store.load(USERS) == []
        path = record_store.data_dir / "users.json"
        assert path.exists()
        assert json.loads(path.read_text()) == []

    @pytest.mark.asyncio
    async def test_empty_file_reads_as_empty(self, record_store):
        """An empty file should read as an empty collection."""
        record_store.data_dir.mkdir(parents=True)
        (record_store.data_dir / "snippets.json").write_text("")
        assert await record_store.load(SNIPPETS) == []

    @pytest.mark.asyncio
    async def test_corrupt_json_raises_storage_error(self, record_store):
        """Invalid JSON should raise StorageError without the path in its message."""
        record_store.data_dir.mkdir(parents=True)
        (record_store.data_dir / "snippets.json").write_text("{not json")
        with pytest.raises(StorageError) as exc_info:
            await record_store.load(SNIPPETS)
        # Path stays in the log context, not in the message
        assert "snippets.json" not in exc_info.value.message
        assert exc_info.value.context["collection"] == SNIPPETS

    @pytest.mark.asyncio
    async def test_non_array_document_raises_storage_error(self, record_store):
        """A JSON object instead of an array should raise StorageError."""
        record_store.data_dir.mkdir(parents=True)
        (record_store.data_dir / "users.json").write_text('{"id": "x"}')
        with pytest.raises(StorageError):
            await record_store.load(USERS)

    @pytest.mark.asyncio
    async def test_unknown_collection_rejected(self, record_store):
        """Unknown collection names should raise ValueError."""
        with pytest.raises(ValueError):
            await record_store.load("notes")


class TestSave:
    """Tests for RecordStore.save."""

    @pytest.mark.asyncio
    async def test_round_trip(self, record_store):
        """Saved records should load back unchanged."""
        records = [{"id": "1", "title": "Héllo", "tags": ["a", "b"]}, {"id": "2"}]
        await record_store.save(SNIPPETS, records)
        assert await record_store.load(SNIPPETS) == records

    @pytest.mark.asyncio
    async def test_save_overwrites_whole_collection(self, record_store):
        """Save should replace the collection, not append to it."""
        await record_store.save(USERS, [{"id": "1"}, {"id": "2"}])
        await record_store.save(USERS, [{"id": "3"}])
        assert await record_store.load(USERS) == [{"id": "3"}]

    @pytest.mark.asyncio
    async def test_save_is_indented_json_with_no_leftover_temp_files(self, record_store):
        """Save should write indented JSON and leave no temp files."""
        await record_store.save(USERS, [{"id": "1"}])
        files = sorted(p.name for p in record_store.data_dir.iterdir())
        assert files == ["users.json"]
        text = (record_store.data_dir / "users.json").read_text()
        assert text.startswith("[\n  {")

    @pytest.mark.asyncio
    async def test_replace_failure_raises_storage_error_and_cleans_up(self, record_store):
        """A failed replace should raise StorageError and keep the old file."""
        await record_store.save(USERS, [{"id": "old"}])
        with patch("aiofiles.os.replace",
                   side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                await record_store.save(USERS, [{"id": "new"}])

        assert sorted(p.name for p in record_store.data_dir.iterdir()) == ["users.json"]
        assert await record_store.load(USERS) == [{"id": "old"}]


class TestMutation:
    """Tests for RecordStore.mutation."""

    @pytest.mark.asyncio
    async def test_changes_are_saved_on_exit(self, record_store):
        """Changes to the yielded list should be saved when the block exits."""
        async with record_store.mutation(SNIPPETS) as records:
            records.append({"id": "a"})
        assert await record_store.load(SNIPPETS) == [{"id": "a"}]

    @pytest.mark.asyncio
    async def test_nothing_saved_when_block_raises(self, record_store):
        """An exception in the block should leave the file untouched."""
        await record_store.save(SNIPPETS, [{"id": "a"}])
        with pytest.raises(RuntimeError):
            async with record_store.mutation(SNIPPETS) as records:
                records.clear()
                raise RuntimeError("abort")
        assert await record_store.load(SNIPPETS) == [{"id": "a"}]

    @pytest.mark.asyncio
    async def test_concurrent_mutations_do_not_lose_updates(self, record_store):
        """Concurrent mutations should all be kept."""
        async def add(i):
            async with record_store.mutation(SNIPPETS) as records:
                await asyncio.sleep(0)
                records.append({"id": str(i)})

        await asyncio.gather(*(add(i) for i in range(20)))
        stored = await record_store.load(SNIPPETS)
        assert sorted(int(r["id"]) for r in stored) == list(range(20))

    @pytest.mark.asyncio
    async def test_first_load_does_not_overwrite_concurrent_mutation(self, record_store):
        """Initializing a missing file should not clobber a concurrent mutation."""
        async def add():
            async with record_store.mutation(SNIPPETS) as records:
                await asyncio.sleep(0)
                records.append({"id": "kept"})

        async def read_twice():
            await record_store.load(SNIPPETS)
            await asyncio.sleep(0)
            return await record_store.load(SNIPPETS)

        await asyncio.gather(add(), read_twice(), record_store.load(SNIPPETS))
        assert await record_store.load(SNIPPETS) == [{"id": "kept"}]

    @pytest.mark.asyncio
    async def test_load_of_missing_file_waits_for_collection_lock(self, record_store):
        """Loading a missing file should wait for the collection lock."""
        async with record_store._lock(SNIPPETS):
            reader = asyncio.create_task(record_store.load(SNIPPETS))
            await asyncio.sleep(0.05)
            assert not reader.done()
            await record_store.save(SNIPPETS, [{"id": "kept"}])

        assert await reader == [{"id": "kept"}]
        assert await record_store.load(SNIPPETS) == [{"id": "kept"}]

    @pytest.mark.asyncio
    async def test_stores_sharing_a_directory_see_each_others_writes(self, test_settings):
        """Two stores over one directory should see the same data."""
        first = RecordStore(test_settings.data_dir)
        second = RecordStore(test_settings.data_dir)
        await first.save(USERS, [{"id": "u1"}])
        assert await second.load(USERS) == [{"id": "u1"}]

"""
SnipKeep Backend — Record Store (JSON Collection Persistence)
==============================================================

What:  Durable, whole-collection read/write for the `users` and `snippets`
       collections.
How:   Each collection is one JSON array of objects in `<data_dir>/<name>.json`.
       `load()` reads the whole array; `save()` rewrites it through a
       temporary sibling file and `os.replace`, so readers only ever see a
       complete document.
Who:   Used by SnippetService and AuthService; nothing else touches the files.

Write Serialization:
    Every request does load → mutate in memory → save. Two requests doing
    that concurrently would silently lose one update. `mutation()` wraps the
    whole cycle in a per-collection asyncio.Lock, so within one process the
    mutating calls run one at a time:

        async with store.mutation("snippets") as records:
            records.append(new_snippet)
        # saved here, lock released

    Plain `load()` of an existing file takes no lock. Creating a missing
    file as `[]` does, so it cannot land on top of a mutation's save.
    Multiple processes sharing one data_dir are still unsafe.

No schema validation happens here. Records go in and come out as dicts.
"""

import asyncio
import json
import logging
import os
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiofiles
import aiofiles.os

from snipkeep.exceptions import StorageError

logger = logging.getLogger(__name__)

USERS = "users"
SNIPPETS = "snippets"

COLLECTIONS = frozenset({USERS, SNIPPETS})

Record = Dict[str, Any]


class RecordStore:
    """
    Async JSON-file store with one file per collection.

    Args:
        data_dir: Directory holding the collection files. Created on first use.
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir).resolve()
        self._locks: Dict[str, asyncio.Lock] = {}

    def _path(self, collection: str) -> Path:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection '{collection}'")
        return self.data_dir / f"{collection}.json"

    def _lock(self, collection: str) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = self._locks[collection] = asyncio.Lock()
        return lock

    async def load(self, collection: str) -> List[Record]:
        """
        Return the full current collection.

        A missing backing file is initialized to `[]` and an empty list is
        returned.

        Raises:
            StorageError: File unreadable or does not hold a JSON array.
        """
        path = self._path(collection)

        if not await aiofiles.os.path.exists(path):
            # Creating the file is a write and must not overlap a mutation
            async with self._lock(collection):
                return await self._read(collection)
        return await self._read(collection)

    async def _read(self, collection: str) -> List[Record]:
        """`load()` without locking. Callers hold the collection lock or
        know the file exists."""
        path = self._path(collection)

        if not await aiofiles.os.path.exists(path):
            await self.save(collection, [])
            logger.info("Initialized empty collection '%s' at %s", collection, path)
            return []

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                raw = await f.read()
            records = json.loads(raw) if raw.strip() else []
        except (OSError, ValueError) as e:
            logger.error("Failed to load collection '%s' from %s: %s", collection, path, e)
            raise StorageError(
                context={"collection": collection, "path": str(path), "error": str(e)},
            )

        if not isinstance(records, list):
            logger.error("Collection '%s' at %s is not a JSON array", collection, path)
            raise StorageError(
                context={"collection": collection, "path": str(path), "error": "not a list"},
            )
        return records

    async def save(self, collection: str, records: List[Record]) -> None:
        """
        Overwrite the entire collection with `records`.

        Raises:
            StorageError: Directory creation or file write failed.
        """
        path = self._path(collection)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(records, indent=2, ensure_ascii=False)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save collection '%s' to %s: %s", collection, path, e)
            self._discard(tmp_path)
            raise StorageError(
                context={"collection": collection, "path": str(path), "error": str(e)},
            )

        logger.debug("Saved %d records to collection '%s'", len(records), collection)

    @asynccontextmanager
    async def mutation(self, collection: str) -> AsyncIterator[List[Record]]:
        """
        Serialized load → modify → save cycle for one collection.

        The yielded list is saved when the block exits normally. If the block
        raises, nothing is written and the exception propagates.
        """
        async with self._lock(collection):
            records = await self._read(collection)
            yield records
            await self.save(collection, records)

    @staticmethod
    def _discard(path: Optional[Path]) -> None:
        if path is None:
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove temporary file %s: %s", path, e)

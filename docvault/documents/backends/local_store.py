# docvault/documents/backends/local_store.py
from __future__ import annotations
import asyncio
import json
import logging
import os
import secrets
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..models import DocumentRecord
from ..store import DocumentNotFound, StoreUnavailable

log = logging.getLogger(__name__)

T = TypeVar("T")


class LocalStore:
    """
    Fallback metadata store: one JSON array in one file, newest entry first.

    Every operation goes through _locked(), which holds the store's lock for
    the whole read -> mutate -> write cycle so concurrent writers cannot
    drop each other's changes. Only one LocalStore may own a given file, and
    only one process may run against it.
    """

    kind = "local"

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    # --- file access (always called with the lock held, in a worker thread) ---

    def _read(self) -> List[Dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StoreUnavailable(f"cannot read {self.path}") from e
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StoreUnavailable(f"corrupt metadata file {self.path}") from e
        if not isinstance(data, list):
            raise StoreUnavailable(f"metadata file {self.path} is not a JSON array")
        if not all(isinstance(e, dict) for e in data):
            raise StoreUnavailable(f"metadata file {self.path} holds a non-object entry")
        return data

    def _write(self, entries: List[Dict[str, Any]]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(entries, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreUnavailable(f"cannot write {self.path}") from e

    async def _locked(self, fn: Callable[[List[Dict[str, Any]]], T], *, write: bool) -> T:
        async with self._lock:
            entries = await asyncio.to_thread(self._read)
            try:
                result = fn(entries)
            except (TypeError, ValueError) as e:
                # an entry that fails to decode counts as a corrupt file
                raise StoreUnavailable(f"undecodable entry in {self.path}") from e
            if write:
                await asyncio.to_thread(self._write, entries)
            return result

    # --- MetadataStore ---

    async def create(self, record: DocumentRecord) -> DocumentRecord:
        def _insert(entries: List[Dict[str, Any]]) -> DocumentRecord:
            taken = {e.get("id") for e in entries}
            doc_id = _new_id()
            while doc_id in taken:
                doc_id = _new_id()

            now = datetime.now(timezone.utc)
            if entries:
                newest = DocumentRecord.from_dict(entries[0]).created_at
                if newest is not None and newest > now:
                    now = newest

            stored = record.with_identity(doc_id, now)
            entries.insert(0, stored.to_dict())
            return stored

        return await self._locked(_insert, write=True)

    async def list_by_owner(self, owner_id: str) -> List[DocumentRecord]:
        def _filter(entries):
            return [DocumentRecord.from_dict(e) for e in entries if e.get("owner_id") == owner_id]

        return await self._locked(_filter, write=False)

    async def get_by_id(self, doc_id: str) -> Optional[DocumentRecord]:
        def _find(entries):
            for e in entries:
                if e.get("id") == doc_id:
                    return DocumentRecord.from_dict(e)
            return None

        return await self._locked(_find, write=False)

    async def update_status(self, doc_id: str, status: str) -> None:
        def _update(entries):
            for e in entries:
                if e.get("id") == doc_id:
                    e["status"] = status
                    return
            raise DocumentNotFound(doc_id)

        await self._locked(_update, write=True)

    async def delete(self, doc_id: str) -> None:
        def _remove(entries):
            kept = [e for e in entries if e.get("id") != doc_id]
            entries[:] = kept

        await self._locked(_remove, write=True)


def _new_id() -> str:
    return f"local-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"

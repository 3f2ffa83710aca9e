# docvault/documents/services.py
from __future__ import annotations
"""
Upload pipeline + the file side of document deletion.

Upload order is strict: validate (present, extension, declared type, then
declared size) -> stream bytes to the content directory -> create the
metadata record. A failure at any step leaves nothing behind:
partial files are removed, and if the store rejects the record the file that
was just written is removed too.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from fastapi import Request

from docvault.security.deps import Principal
from .models import DocumentRecord
from .store import MetadataStore
from .utils import generate_stored_name
from .validators import (
    FileTooLarge,
    declared_mime,
    ensure_allowed_type,
    ensure_declared_length,
    ensure_file_present,
)

log = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB chunks


@dataclass
class DeleteResult:
    file_removed: bool


class DocumentService:
    def __init__(self, store: MetadataStore, content_dir: str, max_bytes: int) -> None:
        self.store = store
        self.content_dir = Path(content_dir)
        self.max_bytes = max_bytes

    async def ingest(
        self, upload: Any, principal: Principal, declared_length: Optional[int] = None
    ) -> DocumentRecord:
        upload = ensure_file_present(upload)
        ext = ensure_allowed_type(upload)
        ensure_declared_length(declared_length, self.max_bytes)

        self.content_dir.mkdir(parents=True, exist_ok=True)
        save_path, total = await self._persist(upload, ext)

        record = DocumentRecord(
            owner_id=principal.uid,
            owner_email=principal.email,
            stored_name=save_path.name,
            original_name=upload.filename or "",
            content_type=declared_mime(upload),
            size_bytes=total,
            storage_path=str(save_path),
        )
        try:
            return await self.store.create(record)
        except Exception:
            log.warning("Metadata write failed; removing uploaded file %s", save_path)
            _remove_quietly(save_path)
            raise

    async def _persist(self, upload: Any, ext: str) -> tuple[Path, int]:
        out, save_path = self._open_unique(ext)
        total = 0
        try:
            with out:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total += len(chunk)
                    if total > self.max_bytes:
                        raise FileTooLarge(self.max_bytes)
                    out.write(chunk)
        except BaseException:
            _remove_quietly(save_path)
            raise
        finally:
            await upload.close()
        return save_path, total

    def _open_unique(self, ext: str):
        # exclusive create: a name clash just draws a new name
        while True:
            save_path = self.content_dir / generate_stored_name(ext)
            try:
                return open(save_path, "xb"), save_path
            except FileExistsError:
                continue

    async def delete(self, record: DocumentRecord) -> DeleteResult:
        """
        Metadata first, then the file. A file that is already gone counts as
        removed; any other file-system error is logged and reported, but
        never undoes the metadata deletion.
        """
        await self.store.delete(record.id)
        if not record.storage_path:
            return DeleteResult(file_removed=True)
        try:
            os.remove(record.storage_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning("Could not remove file %s for document %s: %s", record.storage_path, record.id, e)
            return DeleteResult(file_removed=False)
        return DeleteResult(file_removed=True)

    def content_path(self, record: DocumentRecord) -> Optional[Path]:
        p = Path(record.storage_path)
        return p if p.is_file() else None


def _remove_quietly(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning("Could not remove %s: %s", path, e)


def get_document_service(request: Request) -> DocumentService:
    return request.app.state.documents

# docvault/documents/store.py
from __future__ import annotations
from typing import List, Optional, Protocol

from docvault.config import Settings
from docvault.db.credentials import RemoteBackend
from .models import DocumentRecord


class StoreUnavailable(Exception):
    """Backend I/O failed. The original error is chained as __cause__."""


class DocumentNotFound(Exception):
    pass


class MetadataStore(Protocol):
    kind: str

    async def create(self, record: DocumentRecord) -> DocumentRecord: ...

    async def list_by_owner(self, owner_id: str) -> List[DocumentRecord]: ...

    async def get_by_id(self, doc_id: str) -> Optional[DocumentRecord]: ...

    async def update_status(self, doc_id: str, status: str) -> None: ...

    async def delete(self, doc_id: str) -> None: ...


def build_store(settings: Settings, backend: Optional[RemoteBackend]) -> MetadataStore:
    if backend is not None:
        from .backends.firestore_store import RemoteStore
        return RemoteStore(backend.client, collection=settings.documents_collection)

    from .backends.local_store import LocalStore
    return LocalStore(settings.metadata_file())

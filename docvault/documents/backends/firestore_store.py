# docvault/documents/backends/firestore_store.py
from __future__ import annotations
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from google.api_core import exceptions as gexc
from google.auth import exceptions as auth_exc
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..models import DocumentRecord
from ..store import DocumentNotFound, StoreUnavailable

_BACKEND_ERRORS = (gexc.GoogleAPIError, auth_exc.GoogleAuthError)


class RemoteStore:
    """
    Firestore-backed metadata store. Each operation is a single Firestore
    call; nothing is retried here. Ownership is the caller's job.

    Listing needs a composite index on (owner_id ASC, created_at DESC).
    """

    kind = "remote"

    def __init__(self, client: firestore.AsyncClient, collection: str = "documents") -> None:
        self._collection = client.collection(collection)

    async def create(self, record: DocumentRecord) -> DocumentRecord:
        data = asdict(record)
        data.pop("id", None)
        data["created_at"] = firestore.SERVER_TIMESTAMP
        try:
            update_time, ref = await self._collection.add(data)
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable("firestore insert failed") from e
        # the commit time of the insert is the value the server stamped
        created_at = update_time if isinstance(update_time, datetime) else None
        return record.with_identity(ref.id, created_at)

    async def list_by_owner(self, owner_id: str) -> List[DocumentRecord]:
        query = (
            self._collection
            .where(filter=FieldFilter("owner_id", "==", owner_id))
            .order_by("created_at", direction=firestore.Query.DESCENDING)
        )
        out: List[DocumentRecord] = []
        try:
            async for snap in query.stream():
                out.append(DocumentRecord.from_dict(snap.to_dict() or {}, doc_id=snap.id))
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable("firestore query failed") from e
        return out

    async def get_by_id(self, doc_id: str) -> Optional[DocumentRecord]:
        try:
            snap = await self._collection.document(doc_id).get()
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable("firestore lookup failed") from e
        if not snap.exists:
            return None
        return DocumentRecord.from_dict(snap.to_dict() or {}, doc_id=snap.id)

    async def update_status(self, doc_id: str, status: str) -> None:
        try:
            await self._collection.document(doc_id).update({"status": status})
        except gexc.NotFound as e:
            raise DocumentNotFound(doc_id) from e
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable("firestore update failed") from e

    async def delete(self, doc_id: str) -> None:
        try:
            await self._collection.document(doc_id).delete()
        except _BACKEND_ERRORS as e:
            raise StoreUnavailable("firestore delete failed") from e

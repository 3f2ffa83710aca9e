# docvault/documents/routes.py
from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel

from docvault.security.deps import Principal, auth_user, get_store, owned_document
from .models import DocumentRecord
from .services import DocumentService, get_document_service
from .store import DocumentNotFound, MetadataStore, StoreUnavailable
from .utils import build_content_disposition

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])


class StatusUpdate(BaseModel):
    status: Optional[str] = None


@router.get("")
async def list_documents(
    principal: Principal = Depends(auth_user),
    store: MetadataStore = Depends(get_store),
):
    try:
        records = await store.list_by_owner(principal.uid)
    except StoreUnavailable:
        log.exception("List error for user %s", principal.uid)
        raise HTTPException(status_code=500, detail="Failed to list documents")
    return {"success": True, "documents": [r.to_dict() for r in records]}


@router.get("/{doc_id}")
async def get_document(record: DocumentRecord = Depends(owned_document)):
    return {"success": True, "id": record.id, "data": record.to_dict()}


@router.get("/{doc_id}/content")
async def get_document_content(
    record: DocumentRecord = Depends(owned_document),
    service: DocumentService = Depends(get_document_service),
    download: int = Query(0, ge=0, le=1, description="0=inline (default), 1=attachment"),
):
    path = service.content_path(record)
    if path is None:
        return JSONResponse(status_code=410, content={"success": False, "message": "File is gone"})
    return FileResponse(
        path,
        media_type=record.content_type or "application/octet-stream",
        headers={
            "Content-Disposition": build_content_disposition(record.original_name, bool(download)),
            "X-Content-Type-Options": "nosniff",
        },
    )


@router.patch("/{doc_id}/status")
async def update_status(
    body: Optional[StatusUpdate] = None,
    record: DocumentRecord = Depends(owned_document),
    store: MetadataStore = Depends(get_store),
):
    if body is None or not body.status:
        raise HTTPException(status_code=400, detail="Missing status value")
    try:
        await store.update_status(record.id, body.status)
    except DocumentNotFound:
        raise HTTPException(status_code=404, detail="Document not found")
    except StoreUnavailable:
        log.exception("Update error for document %s", record.id)
        raise HTTPException(status_code=500, detail="Failed to update status")
    return {"success": True, "message": "Status updated"}


@router.delete("/{doc_id}")
async def delete_document(
    record: DocumentRecord = Depends(owned_document),
    service: DocumentService = Depends(get_document_service),
):
    try:
        result = await service.delete(record)
    except StoreUnavailable:
        log.exception("Delete error for document %s", record.id)
        raise HTTPException(status_code=500, detail="Failed to delete document")
    message = "Document deleted" if result.file_removed else "Document deleted; file cleanup failed"
    return {"success": True, "message": message, "file_removed": result.file_removed}

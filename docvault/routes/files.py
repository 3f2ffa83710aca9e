from __future__ import annotations
"""
File upload endpoint.

POST /api/upload  (multipart/form-data)
  headers:
    - Authorization: Bearer <identity-provider token>
  form-data:
    - file: exactly one .pdf / .docx / .txt (max MAX_FILE_SIZE_BYTES)

Behavior:
  1) Read the body up to the headers of the `file` part; nothing is spooled.
  2) Validate the file (present, extension, declared type), then refuse an
     oversized Content-Length before any file bytes are read.
  3) Stream it to the content directory as upload-<ms>-<random><ext>.
  4) Record metadata owned by the caller. If that fails the file is removed.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from docvault.documents.form_stream import FormStream
from docvault.documents.services import DocumentService, get_document_service
from docvault.documents.store import StoreUnavailable
from docvault.documents.validators import declared_length
from docvault.security.deps import Principal, auth_user

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/upload")
async def upload_file(
    request: Request,
    principal: Principal = Depends(auth_user),
    service: DocumentService = Depends(get_document_service),
):
    form = FormStream.from_request(request)
    upload = await form.file_part("file") if form else None
    try:
        record = await service.ingest(upload, principal, declared_length(request.headers))
    except StoreUnavailable:
        log.exception("Upload error for user %s", principal.uid)
        raise HTTPException(status_code=500, detail="Upload failed")

    payload = {
        "success": True,
        "message": f"File uploaded & metadata saved ({service.store.kind})",
        "id": record.id,
        "data": record.to_dict(),
    }
    return JSONResponse(payload, status_code=status.HTTP_201_CREATED)

from typing import Any, Mapping, Optional

from fastapi import HTTPException

from .utils import file_extension

ALLOWED_EXTENSIONS = {".pdf", ".docx", ".txt"}
ALLOWED_MIME = {
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
}

# room for multipart boundaries and part headers on top of the file itself
FORM_OVERHEAD_BYTES = 64 * 1024


class NoFileProvided(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=400, detail="No file uploaded")


class InvalidFileType(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=400, detail="Invalid file type. Only PDF, DOCX, and TXT allowed.")


class FileTooLarge(HTTPException):
    def __init__(self, max_bytes: int) -> None:
        mb = max_bytes / (1024 * 1024)
        super().__init__(status_code=413, detail=f"File too large. Max {mb:g} MB")


def declared_mime(upload: Any) -> str:
    return (upload.content_type or "").split(";")[0].strip().lower()

def ensure_file_present(upload: Any) -> Any:
    # a plain string field named "file" is not an upload
    if upload is None or isinstance(upload, str) or not upload.filename:
        raise NoFileProvided()
    return upload

def ensure_allowed_type(upload: Any) -> str:
    ext = file_extension(upload.filename or "")
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidFileType()
    if declared_mime(upload) not in ALLOWED_MIME:
        raise InvalidFileType()
    return ext

def declared_length(headers: Mapping[str, str]) -> Optional[int]:
    raw = headers.get("content-length")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None

def ensure_declared_length(length: Optional[int], max_bytes: int, slack: int = FORM_OVERHEAD_BYTES) -> None:
    """Reject on Content-Length before any of the file's bytes are read."""
    if length is not None and length > max_bytes + slack:
        raise FileTooLarge(max_bytes)

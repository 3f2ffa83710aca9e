import io
import time
from pathlib import Path

import jwt
from starlette.datastructures import Headers, UploadFile

from docvault.config import Settings
from docvault.documents.models import DocumentRecord

TEST_SECRET = "test-secret-0123456789abcdef0123456789"


def make_settings(root: Path, **overrides) -> Settings:
    values = {
        "UPLOAD_ROOT": str(root / "content"),
        "LOCAL_METADATA_PATH": str(root / "meta" / "local_metadata.json"),
        "JWT_SECRET": TEST_SECRET,
        "JWT_ISSUER": None,
        "FIREBASE_SERVICE_ACCOUNT_PATH": None,
        "FIREBASE_PROJECT_ID": None,
        "FIREBASE_CLIENT_EMAIL": None,
        "FIREBASE_PRIVATE_KEY": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_token(uid: str, *, secret: str = TEST_SECRET, ttl: int = 3600, **claims) -> str:
    now = int(time.time())
    payload = {
        "sub": uid,
        "user_id": uid,
        "email": f"{uid}@example.com",
        "email_verified": True,
        "iat": now,
        "exp": now + ttl,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(uid: str) -> dict:
    return {"Authorization": f"Bearer {make_token(uid)}"}


def make_upload(data: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def make_record(owner_id: str, name: str = "report.pdf", **fields) -> DocumentRecord:
    values = {
        "owner_id": owner_id,
        "owner_email": f"{owner_id}@example.com",
        "stored_name": f"upload-1-abc-{name}",
        "original_name": name,
        "content_type": "application/pdf",
        "size_bytes": 10,
        "storage_path": f"/tmp/upload-1-abc-{name}",
    }
    values.update(fields)
    return DocumentRecord(**values)


BOUNDARY = "docvault-test-boundary"


def multipart_body(*parts, boundary: str = BOUNDARY) -> bytes:
    """parts are (name, filename or None, content type or None, data) tuples."""
    out = b""
    for name, filename, ctype, data in parts:
        disp = f'form-data; name="{name}"'
        if filename is not None:
            disp += f'; filename="{filename}"'
        out += f"--{boundary}\r\nContent-Disposition: {disp}\r\n".encode("utf-8")
        if ctype:
            out += f"Content-Type: {ctype}\r\n".encode("latin-1")
        out += b"\r\n" + data + b"\r\n"
    return out + f"--{boundary}--\r\n".encode("latin-1")

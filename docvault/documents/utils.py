# docvault/documents/utils.py
from __future__ import annotations
import re
import secrets
import time
from pathlib import PurePath
from urllib.parse import quote

_HEADER_BREAKERS_RE = re.compile(r'[\r\n"]')

def build_content_disposition(filename: str, attachment: bool) -> str:
    """
    inline/attachment header for a stored document. The plain filename= is
    an ASCII fallback; the client's full name travels UTF-8 encoded in
    filename* (RFC 6266).
    """
    name = _HEADER_BREAKERS_RE.sub("", filename or "").strip() or "file"
    fallback = name.encode("ascii", "ignore").decode("ascii") or "file"
    disp = "attachment" if attachment else "inline"
    return f"{disp}; filename=\"{fallback}\"; filename*=UTF-8''{quote(name, safe='')}"

def file_extension(original_name: str) -> str:
    """Lower-cased suffix of the client-supplied name, e.g. ".pdf" (or "")."""
    # client names may carry either separator; only the last component counts
    base = PurePath(original_name.replace("\\", "/")).name
    return PurePath(base).suffix.lower()

def generate_stored_name(ext: str) -> str:
    return f"upload-{int(time.time() * 1000)}-{secrets.token_hex(5)}{ext}"

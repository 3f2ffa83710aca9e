from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.concurrency import run_in_threadpool

from docvault.documents.models import DocumentRecord
from docvault.documents.store import MetadataStore, StoreUnavailable

log = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class NoToken(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=401, detail="No token provided", headers={"WWW-Authenticate": "Bearer"})


class InvalidToken(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})


class AccessDenied(HTTPException):
    def __init__(self) -> None:
        super().__init__(status_code=403, detail="Access denied")


@dataclass
class Principal:
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        return cls(
            uid=str(claims.get("user_id") or claims["sub"]),
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
            name=claims.get("name"),
            picture=claims.get("picture"),
            claims=claims,
        )


def get_store(request: Request) -> MetadataStore:
    return request.app.state.store


async def auth_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if creds is None or creds.scheme.lower() != "bearer" or not creds.credentials:
        raise NoToken()
    verifier = request.app.state.verifier
    if verifier is None:
        raise InvalidToken()
    try:
        # JWKS fetches are blocking network calls
        claims = await run_in_threadpool(verifier.verify, creds.credentials)
    except Exception as e:
        # ExpiredSignatureError, InvalidIssuerError, PyJWKClientError etc.
        log.info("Token verification failed: %s", type(e).__name__)
        raise InvalidToken()
    principal = Principal.from_claims(claims)
    request.state.principal = principal
    return principal


def ensure_owner(record: DocumentRecord, principal: Principal) -> None:
    # non-owners get 403, not 404 (existence is not masked)
    if record.owner_id != principal.uid:
        raise AccessDenied()


async def owned_document(
    doc_id: str,
    principal: Principal = Depends(auth_user),
    store: MetadataStore = Depends(get_store),
) -> DocumentRecord:
    """Fetch the document at /{doc_id}; 404 if missing, 403 if not the caller's."""
    try:
        record = await store.get_by_id(doc_id)
    except StoreUnavailable:
        log.exception("Fetch error for document %s", doc_id)
        raise HTTPException(status_code=500, detail="Failed to fetch document")
    if record is None:
        raise HTTPException(status_code=404, detail="Document not found")
    ensure_owner(record, principal)
    return record

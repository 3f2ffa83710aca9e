# docvault/db/credentials.py
from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from google.cloud import firestore
from google.oauth2 import service_account

from ..config import Settings

log = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

_WRAPPING_QUOTES_RE = re.compile(r"^['\"]|['\"]$")


@dataclass(frozen=True)
class RemoteBackend:
    project_id: str
    client: firestore.AsyncClient


def normalize_private_key(raw: str) -> str:
    """Strip wrapping quotes and turn literal "\\n" sequences into newlines."""
    key = _WRAPPING_QUOTES_RE.sub("", raw)
    return key.replace("\\n", "\n")


def load_bundle_from_path(path: str) -> Optional[Dict[str, Any]]:
    p = Path(path)
    if not p.is_absolute():
        p = (Path.cwd() / p).resolve()
    if not p.exists():
        log.warning("Service account file not found: %s", p)
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Failed to load service account from %s: %s", p, e)
        return None
    if not isinstance(data, dict):
        log.warning("Service account file %s is not a JSON object", p)
        return None
    return data


def bundle_from_values(
    project_id: Optional[str],
    client_email: Optional[str],
    private_key: Optional[str],
) -> Optional[Dict[str, Any]]:
    if not (project_id and client_email and private_key):
        return None
    return {
        "type": "service_account",
        "project_id": project_id,
        "client_email": client_email,
        "private_key": normalize_private_key(private_key),
        "token_uri": GOOGLE_TOKEN_URI,
    }


def resolve_credentials(settings: Settings) -> Optional[Dict[str, Any]]:
    """Service account file first, then the three discrete values."""
    bundle = None
    if settings.firebase_service_account_path:
        bundle = load_bundle_from_path(settings.firebase_service_account_path)
    if bundle is None:
        bundle = bundle_from_values(
            settings.firebase_project_id,
            settings.firebase_client_email,
            settings.firebase_private_key,
        )
    return bundle


def resolve_remote_backend(settings: Settings) -> Optional[RemoteBackend]:
    """
    Build the Firestore handle once at startup. Any failure means "no remote
    backend": the caller falls back to the local store instead of crashing.
    """
    bundle = resolve_credentials(settings)
    if bundle is None:
        log.warning("Firebase credentials not found. Falling back to local metadata store.")
        return None

    info = dict(bundle)
    info.setdefault("token_uri", GOOGLE_TOKEN_URI)
    if info.get("private_key"):
        info["private_key"] = normalize_private_key(info["private_key"])
    project_id = info.get("project_id") or settings.firebase_project_id

    try:
        if not project_id:
            raise ValueError("service account bundle has no project_id")
        creds = service_account.Credentials.from_service_account_info(info)
        client = firestore.AsyncClient(project=project_id, credentials=creds)
    except Exception as e:
        log.warning("Firebase initialization failed, running without Firestore: %s", e)
        return None

    log.info("Firebase initialized for project %s.", project_id)
    return RemoteBackend(project_id=project_id, client=client)

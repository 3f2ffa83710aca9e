# docvault/security/jwt.py
from __future__ import annotations
import logging
from typing import Dict, Any, Optional, Protocol

import jwt  # PyJWT

from docvault.config import Settings

log = logging.getLogger(__name__)

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Dict[str, Any]: ...


class FirebaseTokenVerifier:
    """Verify Firebase ID tokens (RS256) against Google's published signing keys."""

    def __init__(self, project_id: str, jwks_url: str) -> None:
        self.project_id = project_id
        self.issuer = FIREBASE_ISSUER_PREFIX + project_id
        # PyJWKClient caches the key set between calls
        self._jwks = jwt.PyJWKClient(jwks_url)

    def verify(self, token: str) -> Dict[str, Any]:
        signing_key = self._jwks.get_signing_key_from_jwt(token)
        data = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=self.project_id,
            issuer=self.issuer,
            options={"require": ["exp", "iat", "iss", "aud", "sub"]},
        )
        if not data.get("sub"):
            raise jwt.InvalidTokenError("Token has empty subject")
        return data


class SharedSecretVerifier:
    """
    HS256 tokens signed with JWT_SECRET. Meant for local development and
    tests, when no identity-provider project is configured.
    """

    def __init__(self, secret: str, issuer: Optional[str] = None) -> None:
        if not secret:
            raise RuntimeError("JWT_SECRET is required for shared-secret verification")
        self._secret = secret
        self.issuer = issuer

    def verify(self, token: str) -> Dict[str, Any]:
        required = ["exp", "iat", "sub"]
        if self.issuer:
            required.append("iss")
        data = jwt.decode(
            token,
            self._secret,
            algorithms=["HS256"],
            issuer=self.issuer,
            options={"require": required},
        )
        if not data.get("sub"):
            raise jwt.InvalidTokenError("Token has empty subject")
        return data


def build_verifier(settings: Settings, project_id: Optional[str] = None) -> Optional[TokenVerifier]:
    """
    Firebase when a project is known (explicit setting or the resolved
    credential bundle), otherwise the shared secret, otherwise nothing.
    """
    project = settings.firebase_project_id or project_id
    if project:
        return FirebaseTokenVerifier(project, settings.firebase_jwks_url)
    if settings.jwt_secret:
        log.warning("No Firebase project configured; verifying bearer tokens with JWT_SECRET (dev mode).")
        return SharedSecretVerifier(settings.jwt_secret, settings.jwt_issuer)
    log.warning("No token verifier configured; every protected route will answer 401.")
    return None

"""
ops_console.auth.deps

FastAPI dependency turning a bearer token into an `Identity`.

Responsibilities:
- Read the optional bearer credentials.
- Validate the token; a missing or invalid token means "unauthenticated", not an error,
  so guards can redirect to the login route instead of answering 401.
"""

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ops_console.access.session import Identity
from ops_console.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from ops_console.observability.logging import get_logger
from ops_console.settings import Settings, get_settings

log = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_identity(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Identity | None:
    if creds is None or not creds.credentials:
        return None

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        log.info("token_rejected", reason=str(e))
        return None

    subject = str(payload.get("sub", ""))
    if not subject:
        return None
    email = payload.get("email")
    return Identity(id=subject, email=str(email) if email else None)

"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ecotrack.auth.jwt import verify_token

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)


async def get_caller_id(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str:
    """
    Verify the bearer token and return the caller's user id.

    Raises 401 when no token is sent or the token does not verify.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthenticated")

    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.info("token_rejected", reason=str(e))
        raise HTTPException(status_code=401, detail="Unauthenticated") from e

    return str(payload["sub"])

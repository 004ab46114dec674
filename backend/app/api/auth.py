"""Minimal auth dependency.

Stub implementation that extracts the owner id from a bearer token or uses
the dev user. Real JWT validation lives outside this service.
"""

import uuid
from typing import Annotated

from fastapi import Header, HTTPException, status

from backend.app.db.context import RequestContext

DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


async def get_current_context(
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Extract request context from authorization header.

    Accepts "Bearer <user_id>" for testing, or falls back to the dev user
    when no header is sent.

    Args:
        authorization: Authorization header (e.g., "Bearer <token>")

    Returns:
        RequestContext with owner_id

    Raises:
        HTTPException: If authorization is invalid
    """
    if not authorization:
        return RequestContext(owner_id=DEV_USER_ID)

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:]  # Strip "Bearer "

    try:
        return RequestContext(owner_id=uuid.UUID(token))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token (expected user id; JWT validation not yet implemented)",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

"""Health check endpoints.

- /health is liveness only
- /healthz checks database connectivity and reports component status
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_session

router = APIRouter()


async def check_db(session: AsyncSession) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        await session.execute(text("SELECT 1"))
        return (True, "ok")
    except SQLAlchemyError as e:
        return (False, f"error: {type(e).__name__}")


def check_extraction(settings: Settings) -> tuple[bool, str]:
    """Report whether real PDF text extraction is configured.

    Placeholder mode is a degraded feature, not an outage.
    """
    return (True, "pymupdf" if settings.text_extraction_enabled else "placeholder")


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, Any] | JSONResponse:
    """Health check endpoint.

    Returns:
        200 with component status if the database is reachable
        503 otherwise
    """
    db_ok, db_status = await check_db(session)
    _, extraction_status = check_extraction(settings)

    response_body = {
        "status": "ok" if db_ok else "degraded",
        "components": {
            "db": db_status,
            "text_extraction": extraction_status,
        },
    }

    if not db_ok:
        return JSONResponse(content=response_body, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return response_body

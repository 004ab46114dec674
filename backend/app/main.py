"""FastAPI application."""

from fastapi import FastAPI

from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.highlights import router as highlights_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.pdfs import router as pdfs_router
from backend.app.api.routes.search import router as search_router
from backend.app.config import get_settings
from backend.app.utils.logging import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(title="PDF Annotation Search API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(pdfs_router)
app.include_router(highlights_router)
app.include_router(search_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "PDF Annotation Search API", "version": "0.1.0"}

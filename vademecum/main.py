"""
Vademecum - FastAPI Application Entry Point

Medication knowledge ingestion and retrieval service
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from vademecum import __version__
from vademecum.api.routes import router as vademecum_router
from vademecum.db.postgres import check_database_health, check_pgvector_extension
from vademecum.db.store import PgMedicationStore
from vademecum.engine import VademecumEngine
from vademecum.observability.metrics import get_metrics_text, reset_metrics

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(engine: VademecumEngine | None = None) -> FastAPI:
    """Build the application. An injected engine is not closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup/shutdown events."""
        logger.info("Starting Vademecum API v%s", __version__)

        owned = engine is None
        app.state.engine = engine or VademecumEngine.from_config()
        logger.info(
            "Engine ready (store=%s, embedding=%s/%s)",
            app.state.engine.config.store_backend,
            app.state.engine.config.embedding_backend,
            app.state.engine.config.embedding_model,
        )

        yield

        logger.info("Shutting down Vademecum API")
        if owned:
            await app.state.engine.close()

    app = FastAPI(
        title="Vademecum",
        description="Medication knowledge ingestion and retrieval",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ============================================
    # Health Check Endpoints
    # ============================================

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "service": "vademecum-api",
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check() -> dict[str, Any]:
        """Readiness check with store status."""
        current = getattr(app.state, "engine", None)
        checks: dict[str, str] = {"store": "unavailable"}

        if isinstance(getattr(current, "store", None), PgMedicationStore):
            db = await check_database_health(current.store.engine)
            checks["store"] = "ok" if db["status"] == "healthy" else "error"
            has_vector = await check_pgvector_extension(current.store.engine)
            checks["pgvector"] = "ok" if has_vector else "missing"
        elif current is not None:
            try:
                await current.store.count()
                checks["store"] = "ok"
            except Exception as e:
                logger.warning("Store readiness check failed: %s", e)
                checks["store"] = "error"

        return {
            "ready": all(v == "ok" for v in checks.values()),
            "checks": checks,
        }

    # ============================================
    # API v1 Routes
    # ============================================

    app.include_router(vademecum_router)

    # ============================================
    # Metrics Endpoint
    # ============================================

    @app.get("/metrics", tags=["Monitoring"])
    async def metrics_endpoint():
        """Prometheus metrics endpoint."""
        return PlainTextResponse(content=get_metrics_text(), media_type="text/plain")

    @app.post("/metrics/reset", tags=["Monitoring"])
    async def reset_metrics_endpoint():
        """Reset all metrics counters."""
        reset_metrics()
        return {"status": "metrics_reset"}

    # ============================================
    # Exception Handlers
    # ============================================

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": str(exc) if app.debug else "An unexpected error occurred",
            },
        )

    return app


app = create_app()


# ============================================
# Main Entry Point
# ============================================


def main():
    """Run the application using uvicorn."""
    import uvicorn

    uvicorn.run(
        "vademecum.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()

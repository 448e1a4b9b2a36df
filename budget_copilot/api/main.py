"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from budget_copilot.api.middleware import MetricsMiddleware, RequestIDMiddleware
from budget_copilot.api.v1 import debts, decision, goals, history, recompute
from budget_copilot.config import settings
from budget_copilot.domain.exceptions import StorageError
from budget_copilot.infrastructure.observability.logging import setup_logging

setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Budget Copilot Decision Engine",
        description="Daily financial instruction, cash runway and debt payoff projections",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added = first executed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(history.router, prefix="/v1", tags=["history"])
    app.include_router(decision.router, prefix="/v1", tags=["decisions"])
    app.include_router(recompute.router, prefix="/v1", tags=["recompute"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(goals.router, prefix="/v1", tags=["goals"])

    return app


app = create_app()

"""FastAPI application factory"""

from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from dealer_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from dealer_gateway.api.v1 import financing, leads
from dealer_gateway.api.v1.schemas import ErrorResponse
from dealer_gateway.infrastructure.database.session import init_db
from dealer_gateway.infrastructure.observability.logging import setup_logging
from dealer_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors in the same envelope as validation failures"""
    try:
        error = HTTPStatus(exc.status_code).name
    except ValueError:
        error = "HTTP_ERROR"
    body = ErrorResponse(error=error, message=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are caller errors: 400, not 422"""
    message = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    body = ErrorResponse(error="INVALID_REQUEST", message=message)
    return JSONResponse(status_code=400, content=body.model_dump())


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Dealer Gateway",
        description="Lead scoring and financing quote service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(financing.router, prefix="/v1", tags=["financing"])
    app.include_router(leads.router, prefix="/v1", tags=["leads"])

    return app


app = create_app()

"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from fhirserver.config import settings
from fhirserver.context import ResourceContextMiddleware
from fhirserver.database import Base, engine
from fhirserver.resources import ResourceRegistry, register_default_resources
from fhirserver.routes.resources import build_resource_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events for startup/shutdown."""
    # Startup: check the document store and optionally create the schema
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.create_tables:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Document tables ensured")
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Document store not available at startup: %s", e)

    yield  # Application runs here

    await engine.dispose()


class ResponseHeadersMiddleware(BaseHTTPMiddleware):
    """Add CORS and content headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        # Resources are readable from any origin
        response.headers["Access-Control-Allow-Origin"] = "*"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response


app = FastAPI(
    title="FHIR Resource Server",
    description="CRUD and search for EnrollmentRequest, OperationOutcome and RelatedPerson",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ResourceContextMiddleware)
app.add_middleware(ResponseHeadersMiddleware)

# CORS middleware answers preflight requests
# Parse comma-separated origins from config
_cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
    expose_headers=["Location"],
)

# One router per served resource kind
register_default_resources()
for kind in ResourceRegistry.all_kinds():
    app.include_router(build_resource_router(kind))


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": "FHIR Resource Server",
        "version": "0.1.0",
        "resources": [kind.name for kind in ResourceRegistry.all_kinds()],
        "docs": "/docs",
    }


def run() -> None:
    """Run the development server."""
    uvicorn.run(
        "fhirserver.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()

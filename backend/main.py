from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn
import logging
from contextlib import asynccontextmanager

from sims.core.config import settings
from sims.core.database import init_db, engine
from sims.core.logging import configure_logging
from sims.middleware.cors import EmptyPreflightCORSMiddleware
from sims.api.v1 import records, reports, seed, sync
from sims.services.replication import (
    ConfigurationError,
    InvalidChangeRequestError,
    ReplicationError
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)

    # Initialize database
    await init_db()

    yield

    await engine.dispose()


app = FastAPI(
    title="Student Information Management System API",
    description="Academic records with best-effort replication to an external database",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=settings.CORS_ALLOW_HEADERS,
)

# Include API routers
app.include_router(sync.router, prefix="/api/v1/sync", tags=["sync"])
app.include_router(seed.router, prefix="/api/v1/seed", tags=["seed"])
app.include_router(records.router, prefix="/api/v1/records", tags=["records"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["reports"])


@app.get("/")
async def root():
    return {"message": "Student Information Management System API", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": "1.0.0"}


@app.exception_handler(ReplicationError)
async def replication_exception_handler(request: Request, exc: ReplicationError):
    if isinstance(exc, InvalidChangeRequestError):
        status_code = 400
    else:
        status_code = 500
    if not isinstance(exc, ConfigurationError):
        logger.error(f"Replication error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.message, "details": jsonable_encoder(exc.to_dict())}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "status_code": exc.status_code}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)}
    )


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info" if not settings.DEBUG else "debug"
    )

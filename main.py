from fastapi import Depends, FastAPI, Request, HTTPException
from sqlalchemy.orm import Session
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import uuid
from contextlib import asynccontextmanager

from content_moderation.routers import moderation, analytics
from content_moderation.core.logger import logger
from content_moderation.core.exceptions import ContentModerationException, EXCEPTION_STATUS_MAPPING
from content_moderation.core.config import settings
from content_moderation.db.init_db import init_db
from content_moderation.db.session import get_db, ping

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    logger.info("Starting content moderation engine", extra={"version": VERSION})

    try:
        init_db()
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}", exc_info=True)

    yield

    logger.info("Shutting down content moderation engine")


app = FastAPI(
    title=settings.app_name,
    description="""
    Moderation decisions for an adult-content subscription platform.

    Content is scored for adult, violence, hate and self-harm risk by a remote
    classifier (or a keyword fallback when it is unavailable) and then
    auto-approved, auto-rejected or queued for human review. Every content id
    is evaluated automatically at most once; reviewers settle queued items.

    ## Authentication

    Reviewer-only endpoints expect `Authorization: Bearer <reviewer key>`.
    """,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to all requests for tracing."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        extra={
            "request_id": request_id,
            "method": request.method,
            "url": str(request.url),
        }
    )

    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        "Request completed",
        extra={
            "request_id": request_id,
            "status_code": response.status_code,
            "process_time": process_time
        }
    )

    return response


@app.exception_handler(ContentModerationException)
async def content_moderation_exception_handler(request: Request, exc: ContentModerationException):
    """Handle application exceptions that escaped the routers."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        f"Content moderation exception: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.error_code,
            "details": exc.details
        }
    )

    return JSONResponse(
        status_code=EXCEPTION_STATUS_MAPPING.get(type(exc), 500),
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
            "request_id": request_id
        }
    )


app.include_router(moderation.router, tags=["moderation"])
app.include_router(analytics.router, tags=["analytics"])


@app.get("/health", tags=["monitoring"])
async def health_check(db: Session = Depends(get_db)):
    """Health check for monitoring and load balancers."""
    try:
        ping(db)
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": VERSION,
            "services": {
                "database": "healthy",
                "api": "healthy"
            }
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": time.time(),
                "error": str(e)
            }
        )


@app.get("/", tags=["general"])
async def root():
    return {
        "message": settings.app_name,
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "content_moderation": "/api/v1/moderate/content",
            "media_moderation": "/api/v1/moderate/media/{media_id}",
            "review_queue": "/api/v1/moderate/records?status=pending",
            "stats": "/api/v1/analytics/stats"
        }
    }

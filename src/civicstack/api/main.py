"""
FastAPI Main Application

CivicStack civic complaint REST API.
"""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config.settings import settings
from src.civicstack import __version__
from src.civicstack.api.cache import get_cache_stats
from src.civicstack.api.dependencies import get_db
from src.civicstack.api.routers import admin, chatbot, complaints, emotion, feedback, stats, votes
from src.civicstack.api.schemas import HealthCheck
from src.civicstack.db.session import close_connections
from src.civicstack.errors import CivicStackError
from src.civicstack.services.chat import ConversationCache
from src.civicstack.utils.logger import bind_request_context, clear_request_context, get_logger, setup_logging

API_VERSION = __version__
REQUEST_ID_HEADER = "X-Request-ID"

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("api_starting", log_format=settings.log_format)
    yield
    close_connections()
    logger.info("api_stopped")


# Create FastAPI app
app = FastAPI(
    title="CivicStack API",
    description="Civic complaint reporting with priority scoring, community voting and staged resolution workflow",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS for the mobile and web clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag every log line of a request with its id; echo the id back."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    bind_request_context(request_id, request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# The only process-wide mutable state: chat sessions
app.state.conversation_cache = ConversationCache(settings.chat_session_capacity)

# Include routers
app.include_router(complaints.router)
app.include_router(votes.router)
app.include_router(admin.router)
app.include_router(admin.dashboard_router)
app.include_router(feedback.router)
app.include_router(emotion.router)
app.include_router(stats.router)
app.include_router(chatbot.router)


@app.exception_handler(CivicStackError)
def handle_civicstack_error(request: Request, exc: CivicStackError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message, details=exc.details)
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    missing = any(error.get("type") == "missing" for error in errors)
    body = {
        "success": False,
        "error": "Required fields are missing" if missing else "Invalid request",
        "code": "MISSING_REQUIRED_FIELDS" if missing else "INVALID_REQUEST",
        "details": jsonable_encoder(errors, custom_encoder={Exception: str}),
    }
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


@app.get("/health", response_model=HealthCheck, tags=["health"])
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
        Health status with database and cache connectivity
    """
    try:
        db.execute(text("SELECT 1"))
        database_status = "connected"
    except SQLAlchemyError as e:
        database_status = f"error: {str(e)}"

    cache_stats = get_cache_stats()
    cache_status = "connected" if cache_stats.get("available") else "unavailable"

    return HealthCheck(
        status="healthy" if database_status == "connected" else "degraded",
        version=API_VERSION,
        database=database_status,
        cache=cache_status,
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/", tags=["root"])
def root():
    """
    Root endpoint.

    Returns:
        API information
    """
    return {
        "name": "CivicStack API",
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "features": [
            "Priority Scoring",
            "Community Voting",
            "Stage Workflow",
            "Transparency Dashboard",
            "Submission Feedback",
            "Civic Assistant",
        ]
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.civicstack.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )

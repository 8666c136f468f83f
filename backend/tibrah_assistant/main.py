"""
Tibrah Assistant - Main FastAPI Application
"""

import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from .config import settings
from .api import chat_router, conversations_router, memory_router
from .core import AIGateway, ConversationStore, HealthMemory, RateLimiter
from .core.logging_config import setup_logging
from .errors import AssistantError, ClientError, SERVER_ERROR_TEXT
from .llm import build_provider_chain
from .middleware import RequestLoggingMiddleware
from .storage import LocalStorage

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the process-local state objects, tear them down on shutdown."""
    setup_logging(settings)

    storage = LocalStorage(settings.local_storage_path)

    conversation_store = ConversationStore(storage)
    await conversation_store.load()

    health_memory = HealthMemory(storage)
    await health_memory.load()

    rate_limiter = RateLimiter(sweep_interval_seconds=settings.rate_limit_sweep_interval_seconds)
    rate_limiter.start()

    app.state.rate_limiter = rate_limiter
    app.state.conversation_store = conversation_store
    app.state.health_memory = health_memory
    app.state.gateway = AIGateway(
        build_provider_chain(settings),
        conversation_store,
        health_memory,
        timeout=settings.llm_timeout_seconds,
    )

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage path: {settings.local_storage_path}")
    logger.info(f"Environment: {settings.environment}")
    yield
    await rate_limiter.stop()
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Conversational health assistant with rate limiting, conversation memory and provider fallback",
    lifespan=lifespan
)

# Allow-list in production; any origin while developing locally
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "development" else settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)

if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware, log_bodies=settings.log_request_bodies)


@app.exception_handler(AssistantError)
async def assistant_error_handler(request: Request, exc: AssistantError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = ClientError("Invalid request body", details=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error, "message": error, "text": error, "success": False},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"[API Error] {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": SERVER_ERROR_TEXT,
            "text": SERVER_ERROR_TEXT,
            "success": False,
        },
    )


app.include_router(chat_router)
app.include_router(conversations_router)
app.include_router(memory_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    gateway = getattr(request.app.state, "gateway", None)
    return {
        "status": "healthy",
        "providers": [p.name for p in gateway.providers] if gateway else [],
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tibrah_assistant.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )

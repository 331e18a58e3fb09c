"""
ChatPad Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from chatpad.config import settings
from chatpad.database import init_db
from chatpad.core.exceptions import ChatPadException
from chatpad.schemas.common import HealthResponse

# Import all API routers
from chatpad.api import (
    auth, account, team, admin, resources, api_keys, webhooks, content, notifications, internal
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    yield
    # Shutdown


app = FastAPI(
    title="ChatPad API",
    description="Multi-tenant chat agent, lead and scheduling platform",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if not settings.DEV_MODE else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChatPadException)
async def chatpad_exception_handler(request: Request, exc: ChatPadException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include all routers
app.include_router(auth.router)
app.include_router(account.router)
app.include_router(team.router)
app.include_router(admin.router)
app.include_router(resources.router)
app.include_router(api_keys.router)
app.include_router(webhooks.router)
app.include_router(content.router)
app.include_router(notifications.router)
app.include_router(internal.router)  # Outbox dispatcher target


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "ChatPad API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": "1.0.0"
    }

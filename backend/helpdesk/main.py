# =============================================================================
# HELPDESK API - FASTAPI MAIN
# =============================================================================
# Main FastAPI application
# =============================================================================

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .auth.router import router as auth_router
from .config import config
from .database import init_database, close_pool, check_database
from .exceptions import register_exception_handlers
from .logging_config import setup_logging
from .routers import admin, data_entries, tickets, users
from .services.registry import registry

logger = logging.getLogger("helpdesk.main")


# =============================================================================
# LIFESPAN - Startup/Shutdown
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    setup_logging()
    logger.info(f"{config.APP_NAME} v{config.VERSION} - starting")

    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    init_database()

    yield

    # Only stop a scheduler that was actually started
    queue = registry.cached('enrichment_queue')
    if queue is not None:
        queue.shutdown()
    close_pool()
    logger.info(f"{config.APP_NAME} - stopped")


# =============================================================================
# APP FASTAPI
# =============================================================================

app = FastAPI(
    title=config.APP_NAME,
    description="Helpdesk ticketing backend with AI triage",
    version=config.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# =============================================================================
# STATIC FILES
# =============================================================================

# Uploaded attachments and images, served under PUBLIC_BASE_URL
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")


# =============================================================================
# ROUTERS
# =============================================================================

API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(tickets.router, prefix=API_PREFIX)
app.include_router(admin.router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(data_entries.router, prefix=API_PREFIX)


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """Application info."""
    return {
        "app": config.APP_NAME,
        "version": config.VERSION,
        "status": "running",
        "docs": "/docs",
        "api": API_PREFIX
    }


@app.get(f"{API_PREFIX}/health", tags=["Root"])
async def health_check():
    """Health check endpoint."""
    if check_database():
        return {"status": "healthy", "database": "connected"}
    return JSONResponse(
        status_code=503,
        content={"status": "unhealthy", "database": "unavailable"}
    )


# =============================================================================
# RUN (development)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "helpdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )

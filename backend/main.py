"""
EduPulse Backend - Main FastAPI Application

Quiz delivery, lesson gating and class analytics over a spreadsheet store.
Version: 2.0
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edupulse.config.settings import settings
from edupulse.clients import StoreClient
from edupulse.session import init_session, get_session
from edupulse.routes.auth_routes import create_auth_routes
from edupulse.routes.quiz_routes import create_quiz_routes
from edupulse.routes.staff_routes import create_staff_routes

# Setup logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup/shutdown."""
    # STARTUP
    logger.info("🚀 EduPulse Backend Starting Up...")

    try:
        settings.validate()
        logger.info("✅ Settings validated")
    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise

    store = StoreClient(settings.STORE_URL, timeout=settings.STORE_TIMEOUT)
    session = init_session(store)
    logger.info("✅ Session initialized")

    # A failed fetch leaves an empty snapshot; /api/session/refresh retries
    if await session.refresh():
        logger.info("✅ Snapshot loaded")
    else:
        logger.warning("⚠️ Starting with an empty snapshot")

    logger.info("✅ Application startup complete")

    yield

    # SHUTDOWN
    logger.info("🛑 Shutting down...")
    session.stop_quiz()


# Create FastAPI application
app = FastAPI(
    title="EduPulse API",
    description="Quiz and class analytics service",
    version="2.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(create_auth_routes())
app.include_router(create_quiz_routes())
app.include_router(create_staff_routes())


# Health check endpoint
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    try:
        snapshot = get_session().snapshot
    except RuntimeError:
        return {"status": "starting", "version": "2.0.0"}

    return {
        "status": "maintenance" if snapshot.maintenance else "healthy",
        "version": "2.0.0",
        "snapshot": {
            "subjects": len(snapshot.subjects),
            "lessons": len(snapshot.lessons),
            "results": len(snapshot.results),
        }
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": "EduPulse",
        "version": "2.0.0",
        "docs": "/docs",
        "health": "/api/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vidnotes.core.config import (
    APP_TITLE,
    APP_VERSION,
    APP_DESCRIPTION,
    CORS_ORIGINS,
    CORS_CREDENTIALS,
    CORS_METHODS,
    CORS_HEADERS,
    LOG_LEVEL,
)
from vidnotes.api.routes import (
    notes,
    folders,
    study,
    ai,
    analytics,
    notifications,
)
from vidnotes.services.workspace import workspaces

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 {APP_TITLE} {APP_VERSION} starting")
    yield
    # Pending editor commits die with the process
    workspaces.close_all()
    logger.info(f"👋 {APP_TITLE} stopped")


app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
    lifespan=lifespan,
)

# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_CREDENTIALS,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
)

# Include routers
app.include_router(notes.router)
app.include_router(folders.router)
app.include_router(study.router)
app.include_router(ai.router)
app.include_router(analytics.router)
app.include_router(notifications.router)

@app.get("/")
async def root():
    return {
        "success": True,
        "message": "VidNotes API is running!",
        "version": APP_VERSION,
        "endpoints": "/docs for API documentation"
    }

# Local development:
# uvicorn vidnotes.main:app --host 0.0.0.0 --port 8000 --reload

"""
Courtside API Server

FastAPI server for team staff roles, capability checks and roster invitations.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import uvicorn

from courtside.api.routes import router
from courtside.database import db
from courtside.services.invitation_expiry_service import get_invitation_expiry_service

# Set up logging
# Allow log level to be configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    logger.info("Starting up Courtside API...")

    # Create tables not yet covered by migrations
    try:
        await db.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    try:
        get_invitation_expiry_service().start()
    except Exception as e:
        logger.error(f"Failed to start invitation expiry worker: {e}", exc_info=True)

    yield

    logger.info("Shutting down Courtside API...")

    try:
        get_invitation_expiry_service().stop()
    except Exception as e:
        logger.error(f"Error stopping invitation expiry worker: {e}", exc_info=True)


app = FastAPI(
    title="Courtside API",
    description="Team roles, permissions and roster invitations for youth basketball leagues",
    version="1.0.0",
    lifespan=lifespan,
)

# Origins configured via ALLOWED_ORIGINS env var
allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

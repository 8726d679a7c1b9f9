"""
HealthMate - FastAPI Application
Main entry point for the web server.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response

from app.chat import close_gateway, get_gateway
from app.routes import router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-25s | %(levelname)-7s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Session-ID",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI application.
    Handles startup and shutdown logic.
    """
    # Startup
    logger.info("=" * 60)
    logger.info("  HealthMate - Starting up...")
    logger.info("=" * 60)
    get_gateway()
    logger.info("HealthMate is ready!")
    logger.info("=" * 60)

    yield

    logger.info("HealthMate - Shutting down...")
    close_gateway()


# ── FastAPI App ─────────────────────────────────────────────────────────────
app = FastAPI(
    title="HealthMate",
    description="Health and wellness chat assistant with per-session history",
    version="1.0.0",
    lifespan=lifespan,
)


# CORS: answer every preflight directly, tag every response
@app.middleware("http")
async def cors(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


# Routes
app.include_router(router)

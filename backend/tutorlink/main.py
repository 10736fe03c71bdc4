# backend/tutorlink/main.py
"""
FastAPI application entry point.

Run locally with ``uvicorn tutorlink.main:app --reload`` from ``backend/``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies.services import build_payment_gateway
from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_PREFIX, API_TITLE, API_VERSION, BRAND_NAME
from .database import init_db
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import auth, bookings, health, reviews, subjects, users
from .services.notification_service import build_notification_client

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    init_db()
    app.state.payment_gateway = build_payment_gateway()
    app.state.notification_client = build_notification_client(settings)

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")
    client = getattr(app.state, "notification_client", None)
    if client is not None:
        client.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    logger.info("CORS allow_origins=%s", settings.cors_origin_list)

    api = APIRouter(prefix=API_PREFIX)
    api.include_router(auth.router, prefix="/auth")
    api.include_router(bookings.router, prefix="/bookings")
    api.include_router(reviews.router, prefix="/reviews")
    api.include_router(subjects.router, prefix="/subjects")
    api.include_router(users.router, prefix="/users")
    api.include_router(health.router)
    app.include_router(api)
    return app


app = create_app()

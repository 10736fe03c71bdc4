# backend/tutorlink/routes/health.py
"""
Health check and metrics endpoints for monitoring and load balancer probes.
"""

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Response
from pydantic import BaseModel

from ..core.config import settings
from ..core.constants import API_VERSION, BRAND_NAME
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.base_responses import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthData(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: str


@router.get("/health", response_model=ApiResponse[HealthData])
def health_check() -> ApiResponse[HealthData]:
    return ApiResponse(
        data=HealthData(
            status="healthy",
            service=f"{BRAND_NAME.lower()}-api",
            version=API_VERSION,
            environment=settings.environment,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        )
    )


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=prometheus_metrics.get_metrics(), media_type=prometheus_metrics.get_content_type())

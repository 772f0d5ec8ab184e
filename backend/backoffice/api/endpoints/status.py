# backoffice/api/endpoints/status.py
from fastapi import APIRouter, Response, status as http_status
from loguru import logger
from datetime import datetime, timezone
import time as process_time
from typing import Dict, Literal, Optional
from pydantic import BaseModel, Field

from backoffice.core.database import mongo_manager

class ComponentStatus(BaseModel):
    status: Literal["ok", "error", "unavailable"] = "ok"
    message: Optional[str] = None

class HealthCheckResponse(BaseModel):
    overall_status: Literal["ok", "error"] = "ok"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = Field(..., description="Process uptime in seconds")
    components: Dict[str, ComponentStatus]

PROCESS_START_TIME = process_time.monotonic()

router = APIRouter(prefix="/status", tags=["Status & Health"])

@router.get("/healthcheck", response_model=HealthCheckResponse, summary="Application health and component status")
async def get_application_health():
    log = logger.bind(api_endpoint="/status/healthcheck GET")
    components: Dict[str, ComponentStatus] = {}
    critical_ok = True

    # Sem Depends(get_database): o healthcheck deve responder 503 com corpo, não erro de dependência
    db = mongo_manager.db
    if db is not None:
        try:
            await db.command("ping")
            components["database_mongodb"] = ComponentStatus(status="ok")
        except Exception as e:
            log.error(f"MongoDB connection check failed: {e}")
            components["database_mongodb"] = ComponentStatus(status="error", message="MongoDB ping failed")
            critical_ok = False
    else:
        log.error("MongoDB connection not available.")
        components["database_mongodb"] = ComponentStatus(status="unavailable", message="DB client not available")
        critical_ok = False

    payload = HealthCheckResponse(
        overall_status="ok" if critical_ok else "error",
        uptime_seconds=process_time.monotonic() - PROCESS_START_TIME,
        components=components,
    )
    return Response(
        content=payload.model_dump_json(exclude_none=True),
        status_code=http_status.HTTP_200_OK if critical_ok else http_status.HTTP_503_SERVICE_UNAVAILABLE,
        media_type="application/json",
    )

"""
Jokes API Backend — Health Check Route
========================================

What:  GET /health, the store-connectivity probe for load balancers and Docker.
How:   Database.ping() runs SELECT 1 on a pooled connection.
           reachable   → 200 {"status": "OK",    "database": "connected",    ...}
           unreachable → 500 {"status": "ERROR", "database": "disconnected", ...}
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from jokes_api.database import Database, get_database
from jokes_api.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={500: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(database: Database = Depends(get_database)):
    now = datetime.now(timezone.utc)

    if await database.ping():
        return HealthResponse(status="OK", database="connected", timestamp=now)

    logger.warning("Health check: database unreachable")
    body = HealthResponse(status="ERROR", database="disconnected", timestamp=now)
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

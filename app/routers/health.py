"""
Health probes

- /health/live      process is up (no dependencies touched)
- /health/ready     database reachable, otherwise 503
- /health/detailed  per-component status, authenticated
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime, timezone
import time

from ..database import get_db
from ..config import settings
from ..utils.dependencies import get_current_user
from ..models.user import User
from ..services.contract_renderer import env as template_env
from ..services.storage_service import storage_service

router = APIRouter(prefix="/health", tags=["Health"])

API_VERSION = "1.0.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_database(db: Session) -> dict:
    try:
        start = time.perf_counter()
        db.execute(text("SELECT 1"))
        return {
            "status": "up",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "dialect": db.bind.dialect.name,
        }
    except Exception as e:
        return {"status": "down", "error": str(e)[:100]}


def check_object_storage() -> dict:
    # Optional: logos and photos are simply omitted from contracts without it
    if not storage_service.enabled:
        return {"status": "not_configured"}
    return {"status": "configured", "container": storage_service.container_name}


def check_contract_template() -> dict:
    try:
        template_env.get_template("contract.html")
        return {"status": "up"}
    except Exception as e:
        return {"status": "down", "error": str(e)[:100]}


@router.get("/live")
async def liveness_check():
    return {"status": "alive", "timestamp": _now()}


@router.get("/ready")
async def readiness_check(db: Session = Depends(get_db)):
    database = check_database(db)
    if database["status"] != "up":
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "database_unavailable", "timestamp": _now()},
        )
    return {"status": "ready", "timestamp": _now()}


@router.get("/detailed")
async def detailed_health_check(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    checks = {
        "database": check_database(db),
        "contract_template": check_contract_template(),
        "object_storage": check_object_storage(),
    }
    healthy = checks["database"]["status"] == "up" and checks["contract_template"]["status"] == "up"

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": _now(),
        "version": API_VERSION,
        "environment": settings.environment,
        "checks": checks,
        "contracts": {
            "tax_rate": str(settings.contract_tax_rate),
            "base_version": settings.contract_base_version,
            "inspection_base_url": settings.inspection_base_url,
        },
    }

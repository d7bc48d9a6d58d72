from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from datetime import datetime, timezone
from xray_drafts.config.settings import settings
from xray_drafts.core.dependencies import get_credentials_repository
from xray_drafts.repositories.interfaces.credentials_repository import ICredentialsRepository

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str


@router.get("", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        version="1.0.0",
        environment=settings.environment
    )


@router.get("/readiness")
async def readiness_check(credentials: ICredentialsRepository = Depends(get_credentials_repository)):
    """Readiness check endpoint"""
    checks = {
        "drafts_dir": "ok" if settings.drafts_dir.is_dir() else "missing",
        "xray_config": "ok" if await credentials.exists() else "not_configured",
    }

    all_ok = all(status == "ok" for status in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc)
    }

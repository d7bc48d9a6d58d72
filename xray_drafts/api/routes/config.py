from urllib.parse import urlparse
from fastapi import APIRouter, Depends, HTTPException, Request, status
import structlog

from xray_drafts.core.rate_limit import SlidingWindowRateLimiter
from xray_drafts.models.schemas import CredentialsRequest, XrayConfig
from xray_drafts.repositories.interfaces.credentials_repository import ICredentialsRepository
from xray_drafts.repositories.interfaces.xray_service import IXrayService
from xray_drafts.core.dependencies import (
    get_connection_rate_limiter, get_credentials_repository, get_xray_service
)

logger = structlog.get_logger()

router = APIRouter(prefix="/config", tags=["config"])


def _required(value, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return value.strip()


@router.get("")
async def get_config(repository: ICredentialsRepository = Depends(get_credentials_repository)):
    """Configuration status. Secrets are never returned."""
    try:
        config = await repository.read()
    except Exception as e:
        logger.error("Failed to read config", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to read config")
    if not config or not config.xray_client_id or not config.xray_client_secret:
        return {"configured": False}
    return {"configured": True, "jiraBaseUrl": config.jira_base_url, "hasCredentials": True}


@router.post("/test-connection")
async def test_connection(
    request: Request,
    credentials: CredentialsRequest,
    xray_service: IXrayService = Depends(get_xray_service),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_connection_rate_limiter)
):
    """Check Xray credentials without saving them"""
    client_ip = request.client.host if request.client else "unknown"
    wait_seconds = rate_limiter.retry_after(client_ip)
    if wait_seconds is not None:
        logger.warning("Test connection rate limited", client_ip=client_ip, wait_seconds=wait_seconds)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": f"Too many attempts. Please wait {wait_seconds} seconds.",
                "waitSeconds": wait_seconds,
            }
        )

    client_id = _required(credentials.xray_client_id, "Client ID is required")
    client_secret = _required(credentials.xray_client_secret, "Client Secret is required")

    rate_limiter.record(client_ip)
    try:
        validation = await xray_service.validate_credentials(client_id, client_secret)
    except Exception as e:
        logger.error("Failed to test connection", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to test connection")
    if not validation.success:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=validation.error or "Invalid credentials")
    return {"success": True}


@router.get("/test")
async def test_saved_connection(
    repository: ICredentialsRepository = Depends(get_credentials_repository),
    xray_service: IXrayService = Depends(get_xray_service)
):
    """Check the saved credentials"""
    config = await repository.read()
    if not config or not config.xray_client_id or not config.xray_client_secret:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not configured")
    try:
        validation = await xray_service.validate_credentials(config.xray_client_id, config.xray_client_secret)
    except Exception as e:
        logger.error("Failed to test connection", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to test connection")
    if not validation.success:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=validation.error or "Connection failed")
    return {"success": True}


@router.post("")
async def save_config(
    credentials: CredentialsRequest,
    repository: ICredentialsRepository = Depends(get_credentials_repository),
    xray_service: IXrayService = Depends(get_xray_service)
):
    """Validate and save Xray credentials"""
    client_id = _required(credentials.xray_client_id, "xrayClientId is required")
    client_secret = _required(credentials.xray_client_secret, "xrayClientSecret is required")
    jira_base_url = _required(credentials.jira_base_url, "jiraBaseUrl is required")
    if not urlparse(jira_base_url).hostname:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="jiraBaseUrl must be a valid URL")

    try:
        validation = await xray_service.validate_credentials(client_id, client_secret)
        if not validation.success:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=validation.error or "Invalid credentials")

        await repository.write(XrayConfig(
            xray_client_id=client_id,
            xray_client_secret=client_secret,
            jira_base_url=jira_base_url,
        ))
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to save configuration", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save configuration")


@router.delete("")
async def delete_config(repository: ICredentialsRepository = Depends(get_credentials_repository)):
    try:
        await repository.delete()
        return {"success": True}
    except Exception as e:
        logger.error("Failed to delete config", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete config")

from fastapi import APIRouter, Depends, HTTPException, status
import structlog

from xray_drafts.core.naming import is_valid_project_key
from xray_drafts.models.schemas import (
    ActiveProjectRequest, AddProjectRequest, AppSettings, ProjectSettings
)
from xray_drafts.repositories.interfaces.settings_repository import ISettingsRepository
from xray_drafts.core.dependencies import get_settings_repository

logger = structlog.get_logger()

router = APIRouter(prefix="/settings", tags=["settings"])


def _server_error(message: str, **context) -> HTTPException:
    logger.error(message, **context)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.get("")
async def get_settings(repository: ISettingsRepository = Depends(get_settings_repository)):
    """Current settings, reconciled with the project folders on disk"""
    try:
        app_settings = await repository.get_synced()
        return app_settings.to_document()
    except Exception as e:
        raise _server_error("Failed to read settings", error=str(e))


@router.put("")
async def update_settings(
    app_settings: AppSettings,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    try:
        await repository.write(app_settings)
        return {"success": True, "settings": app_settings.to_document()}
    except Exception as e:
        raise _server_error("Failed to update settings", error=str(e))


@router.post("/projects")
async def add_project(
    request: AddProjectRequest,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    """Add a project, or unhide it if it is already known"""
    if not request.project_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project key is required")
    if not is_valid_project_key(request.project_key):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid project key: {request.project_key}")
    try:
        result = await repository.add_project(request.project_key, request.color)
        return result.to_document(exclude_none=True)
    except Exception as e:
        raise _server_error("Failed to add project", project_key=request.project_key, error=str(e))


@router.delete("/projects/{project_key}")
async def remove_project(
    project_key: str,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    """Forget a project. Drafts on disk are kept."""
    try:
        result = await repository.remove_project(project_key)
        return result.to_document(exclude_none=True)
    except Exception as e:
        raise _server_error("Failed to remove project", project_key=project_key, error=str(e))


@router.post("/projects/{project_key}/hide")
async def hide_project(
    project_key: str,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    try:
        result = await repository.hide_project(project_key)
        return result.to_document(exclude_none=True)
    except Exception as e:
        raise _server_error("Failed to hide project", project_key=project_key, error=str(e))


@router.post("/projects/{project_key}/unhide")
async def unhide_project(
    project_key: str,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    try:
        result = await repository.unhide_project(project_key)
        return result.to_document(exclude_none=True)
    except Exception as e:
        raise _server_error("Failed to unhide project", project_key=project_key, error=str(e))


@router.post("/active-project")
async def set_active_project(
    request: ActiveProjectRequest,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    if not request.project_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project key is required")
    try:
        result = await repository.set_active_project(request.project_key)
    except Exception as e:
        raise _server_error("Failed to set active project", project_key=request.project_key, error=str(e))
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    return result.to_document(exclude_none=True)


@router.get("/projects/{project_key}")
async def get_project_settings(
    project_key: str,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    try:
        project_settings = await repository.get_project_settings(project_key)
        return project_settings.to_document()
    except Exception as e:
        raise _server_error("Failed to read project settings", project_key=project_key, error=str(e))


@router.put("/projects/{project_key}")
async def update_project_settings(
    project_key: str,
    project_settings: ProjectSettings,
    repository: ISettingsRepository = Depends(get_settings_repository)
):
    try:
        await repository.save_project_settings(project_key, project_settings)
        return {"success": True, "projectSettings": project_settings.to_document()}
    except Exception as e:
        raise _server_error("Failed to update project settings", project_key=project_key, error=str(e))

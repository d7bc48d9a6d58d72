from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
import structlog

from xray_drafts.models.schemas import Draft
from xray_drafts.services.draft_service import (
    DraftService, DraftValidationError, InvalidStatusTransitionError
)
from xray_drafts.core.dependencies import get_draft_service

logger = structlog.get_logger()

router = APIRouter(prefix="/drafts", tags=["drafts"])


def _saved(file_path, draft: Draft) -> dict:
    return {"success": True, "filePath": str(file_path), "draft": draft.to_document(exclude_unset=True)}


@router.get("")
async def list_drafts(
    project: Optional[str] = None,
    service: DraftService = Depends(get_draft_service)
):
    """List drafts, newest first, optionally for one project"""
    try:
        drafts = await service.list_drafts(project or None)
        return [draft.to_document(exclude_unset=True) for draft in drafts]
    except Exception as e:
        logger.error("Failed to list drafts", project=project, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list drafts"
        )


@router.get("/{draft_id}")
async def get_draft(
    draft_id: str,
    service: DraftService = Depends(get_draft_service)
):
    """Get a draft by ID"""
    try:
        draft = await service.get_draft(draft_id)
    except Exception as e:
        logger.error("Failed to read draft", draft_id=draft_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read draft"
        )
    if not draft:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Draft not found"
        )
    return draft.to_document(exclude_unset=True)


@router.post("")
async def create_draft(
    draft: Draft,
    service: DraftService = Depends(get_draft_service)
):
    """Create a new draft"""
    try:
        file_path, saved = await service.save_draft(draft)
        return _saved(file_path, saved)
    except DraftValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error("Failed to create draft", draft_id=draft.id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create draft"
        )


@router.put("/{draft_id}")
async def update_draft(
    draft_id: str,
    draft: Draft,
    service: DraftService = Depends(get_draft_service)
):
    """Update a draft, moving its file if the summary or project changed"""
    try:
        file_path, saved = await service.save_draft(draft, path_id=draft_id)
        return _saved(file_path, saved)
    except DraftValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error("Failed to update draft", draft_id=draft_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update draft"
        )


@router.delete("/{draft_id}")
async def delete_draft(
    draft_id: str,
    service: DraftService = Depends(get_draft_service)
):
    """Delete a draft"""
    try:
        success = await service.delete_draft(draft_id)
    except Exception as e:
        logger.error("Failed to delete draft", draft_id=draft_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete draft"
        )
    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Draft not found"
        )
    return {"success": True}


@router.delete("")
async def delete_all_drafts(service: DraftService = Depends(get_draft_service)):
    """Delete every draft. The UI asks for confirmation first."""
    try:
        await service.delete_all_drafts()
        return {"success": True}
    except Exception as e:
        logger.error("Failed to delete all drafts", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete all drafts"
        )

import time
from pathlib import Path
from typing import List, Optional, Tuple

import structlog

from xray_drafts.core.naming import is_valid_project_key
from xray_drafts.models.schemas import Draft, DraftStatus, ImportResult
from xray_drafts.repositories.interfaces.draft_repository import IDraftRepository
from xray_drafts.repositories.interfaces.xray_service import IXrayService

logger = structlog.get_logger()


class DraftValidationError(ValueError):
    """Raised for requests rejected before anything is written."""


class InvalidStatusTransitionError(ValueError):
    """Raised when a write would move a draft out of the imported state."""


def can_transition(current: DraftStatus, target: DraftStatus) -> bool:
    """``new``, ``draft`` and ``ready`` move freely; ``imported`` is terminal."""
    if current == DraftStatus.IMPORTED:
        return target == DraftStatus.IMPORTED
    return True


def now_ms() -> int:
    return int(time.time() * 1000)


class DraftService:
    """Business logic service for draft operations"""

    def __init__(self, draft_repository: IDraftRepository, xray_service: IXrayService):
        self.draft_repository = draft_repository
        self.xray_service = xray_service

    async def list_drafts(self, project_key: Optional[str] = None) -> List[Draft]:
        return await self.draft_repository.list(project_key)

    async def get_draft(self, draft_id: str) -> Optional[Draft]:
        return await self.draft_repository.read(draft_id)

    async def save_draft(self, draft: Draft, path_id: Optional[str] = None) -> Tuple[Path, Draft]:
        """Create or update a draft.

        ``path_id`` is the id from the URL on updates and must match the body.
        """
        if path_id is not None:
            if draft.id != path_id:
                raise DraftValidationError("Draft id mismatch")
        elif not draft.id:
            raise DraftValidationError("Draft must have an id")
        if draft.project_key and not is_valid_project_key(draft.project_key):
            raise DraftValidationError(f"Invalid project key: {draft.project_key}")

        existing = await self.draft_repository.read(draft.id)
        if existing and not can_transition(existing.status, draft.status):
            raise InvalidStatusTransitionError(
                f"Cannot change status of draft {draft.id} from {existing.status.value} to {draft.status.value}"
            )

        file_path = await self.draft_repository.write(draft.id, draft)
        return file_path, draft

    async def delete_draft(self, draft_id: str) -> bool:
        return await self.draft_repository.delete(draft_id)

    async def delete_all_drafts(self) -> None:
        await self.draft_repository.delete_all()

    async def import_to_xray(self, draft_ids: Optional[List[str]], project_key: Optional[str] = None) -> Optional[ImportResult]:
        """Push drafts to Xray and mark the imported ones.

        Returns None when none of the ids refer to an existing draft.
        """
        if not draft_ids:
            raise DraftValidationError("draftIds array is required")

        drafts = []
        for draft_id in draft_ids:
            draft = await self.draft_repository.read(draft_id)
            if draft:
                drafts.append(draft)
            else:
                logger.warning("Skipping unknown draft for import", draft_id=draft_id)

        if not drafts:
            return None

        result = await self.xray_service.import_drafts(drafts, project_key)

        if result.success and result.test_keys and result.test_issue_ids:
            for draft, test_key, test_issue_id in zip(drafts, result.test_keys, result.test_issue_ids):
                draft.status = DraftStatus.IMPORTED
                draft.test_key = test_key
                draft.test_issue_id = test_issue_id
                draft.updated_at = now_ms()
                await self.draft_repository.write(draft.id, draft)
            logger.info("Drafts imported to Xray", count=len(result.test_keys), job_id=result.job_id)
        else:
            logger.error("Xray import failed", error=result.error, job_id=result.job_id)

        return result

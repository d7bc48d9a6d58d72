from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, NamedTuple, Optional
from xray_drafts.models.schemas import Draft


class LocatedDraft(NamedTuple):
    draft: Draft
    file_path: Path


class IDraftRepository(ABC):
    """Interface for draft storage operations"""

    @abstractmethod
    async def locate(self, draft_id: str) -> Optional[LocatedDraft]:
        """Find a draft and the file it is stored in"""
        pass

    @abstractmethod
    async def read(self, draft_id: str) -> Optional[Draft]:
        pass

    @abstractmethod
    async def list(self, project_key: Optional[str] = None) -> List[Draft]:
        """List drafts, newest first"""
        pass

    @abstractmethod
    async def write(self, draft_id: str, draft: Draft) -> Path:
        """Write a draft, relocating it if its summary or project changed"""
        pass

    @abstractmethod
    async def delete(self, draft_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        pass

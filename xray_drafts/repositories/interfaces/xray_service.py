from abc import ABC, abstractmethod
from typing import List, Optional
from xray_drafts.models.schemas import (
    Draft, FolderNode, ImportResult, ValidationResult, XrayEntity, XrayEntityWithCount
)


class IXrayService(ABC):
    """Interface for Xray Cloud operations"""

    @abstractmethod
    async def validate_credentials(self, client_id: str, client_secret: str) -> ValidationResult:
        """Check credentials against the Xray authenticate endpoint"""
        pass

    @abstractmethod
    async def import_drafts(self, drafts: List[Draft], project_key: Optional[str] = None) -> ImportResult:
        """Bulk import drafts as Xray tests and wait for the import job"""
        pass

    @abstractmethod
    async def get_test_plans(self, project_key: str) -> List[XrayEntityWithCount]:
        pass

    @abstractmethod
    async def get_test_executions(self, project_key: str) -> List[XrayEntityWithCount]:
        pass

    @abstractmethod
    async def get_test_sets(self, project_key: str) -> List[XrayEntityWithCount]:
        pass

    @abstractmethod
    async def get_preconditions(self, project_key: str) -> List[XrayEntity]:
        pass

    @abstractmethod
    async def get_folder(self, project_id: str, path: str = "/") -> FolderNode:
        pass

    @abstractmethod
    async def get_project_id(self, project_key: str) -> str:
        pass

    @abstractmethod
    async def change_entity_tests(self, entity: str, entity_id: str, test_issue_ids: List[str], add: bool) -> dict:
        """Add or remove tests on a test plan, test execution or test set"""
        pass

    @abstractmethod
    async def change_folder_tests(self, project_id: str, folder_path: str, test_issue_ids: List[str], add: bool) -> dict:
        pass

    @abstractmethod
    async def change_test_preconditions(self, test_issue_id: str, precondition_issue_ids: List[str], add: bool) -> dict:
        pass

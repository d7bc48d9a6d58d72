from abc import ABC, abstractmethod
from typing import Optional
from xray_drafts.models.schemas import AppSettings, ProjectSettings, ProjectResult


class ISettingsRepository(ABC):
    """Interface for the settings document and project management"""

    @abstractmethod
    async def read(self) -> AppSettings:
        pass

    @abstractmethod
    async def write(self, app_settings: AppSettings) -> None:
        pass

    @abstractmethod
    async def sync_with_filesystem(self) -> bool:
        """Drop projects whose draft directory no longer exists; True if anything changed"""
        pass

    @abstractmethod
    async def get_synced(self) -> AppSettings:
        pass

    @abstractmethod
    async def add_project(self, project_key: str, color: Optional[str] = None) -> ProjectResult:
        pass

    @abstractmethod
    async def hide_project(self, project_key: str) -> ProjectResult:
        pass

    @abstractmethod
    async def unhide_project(self, project_key: str) -> ProjectResult:
        pass

    @abstractmethod
    async def set_active_project(self, project_key: str) -> ProjectResult:
        pass

    @abstractmethod
    async def remove_project(self, project_key: str) -> ProjectResult:
        pass

    @abstractmethod
    async def get_project_settings(self, project_key: str) -> ProjectSettings:
        pass

    @abstractmethod
    async def save_project_settings(self, project_key: str, project_settings: ProjectSettings) -> None:
        pass

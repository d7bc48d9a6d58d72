from functools import lru_cache
from fastapi import Depends
from xray_drafts.config.settings import settings
from xray_drafts.core.rate_limit import SlidingWindowRateLimiter
from xray_drafts.repositories.interfaces.draft_repository import IDraftRepository
from xray_drafts.repositories.interfaces.settings_repository import ISettingsRepository
from xray_drafts.repositories.interfaces.credentials_repository import ICredentialsRepository
from xray_drafts.repositories.interfaces.xray_service import IXrayService

from xray_drafts.repositories.implementations.file_draft_repository import FileDraftRepository
from xray_drafts.repositories.implementations.file_settings_repository import FileSettingsRepository
from xray_drafts.repositories.implementations.file_credentials_repository import FileCredentialsRepository
from xray_drafts.repositories.implementations.xray_cloud_service import XrayCloudService

from xray_drafts.services.draft_service import DraftService


class Container:
    """Dependency injection container"""

    @lru_cache()
    def draft_repository(self) -> IDraftRepository:
        """Get draft repository instance (singleton)"""
        return FileDraftRepository(settings.drafts_dir)

    @lru_cache()
    def settings_repository(self) -> ISettingsRepository:
        """Get settings repository instance (singleton)"""
        return FileSettingsRepository(settings.settings_path, settings.drafts_dir)

    @lru_cache()
    def credentials_repository(self) -> ICredentialsRepository:
        """Get credentials repository instance (singleton)"""
        return FileCredentialsRepository(settings.xray_config_path)

    @lru_cache()
    def xray_service(self) -> IXrayService:
        """Get Xray service instance (singleton)"""
        return XrayCloudService(self.credentials_repository())

    @lru_cache()
    def connection_rate_limiter(self) -> SlidingWindowRateLimiter:
        return SlidingWindowRateLimiter(
            max_attempts=settings.test_connection_max_attempts,
            window_seconds=settings.test_connection_window_seconds,
        )

    def draft_service(self, draft_repository: IDraftRepository, xray_service: IXrayService) -> DraftService:
        """Get draft service instance"""
        return DraftService(draft_repository=draft_repository, xray_service=xray_service)


# Global container instance
container = Container()


# Dependency providers for FastAPI
def get_draft_repository() -> IDraftRepository:
    """FastAPI dependency for draft repository"""
    return container.draft_repository()


def get_settings_repository() -> ISettingsRepository:
    """FastAPI dependency for settings repository"""
    return container.settings_repository()


def get_credentials_repository() -> ICredentialsRepository:
    """FastAPI dependency for credentials repository"""
    return container.credentials_repository()


def get_xray_service() -> IXrayService:
    """FastAPI dependency for Xray service"""
    return container.xray_service()


def get_connection_rate_limiter() -> SlidingWindowRateLimiter:
    return container.connection_rate_limiter()


def get_draft_service(
    draft_repository: IDraftRepository = Depends(get_draft_repository),
    xray_service: IXrayService = Depends(get_xray_service),
) -> DraftService:
    """FastAPI dependency for draft service"""
    return container.draft_service(draft_repository, xray_service)

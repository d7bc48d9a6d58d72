import pytest
from fastapi.testclient import TestClient

from main import app
from xray_drafts.core.dependencies import (
    get_connection_rate_limiter,
    get_credentials_repository,
    get_draft_repository,
    get_settings_repository,
    get_xray_service,
)
from xray_drafts.core.rate_limit import SlidingWindowRateLimiter
from xray_drafts.models.schemas import (
    Draft, FolderNode, ImportResult, ValidationResult, XrayEntity, XrayEntityWithCount
)
from xray_drafts.repositories.implementations.file_credentials_repository import FileCredentialsRepository
from xray_drafts.repositories.implementations.file_draft_repository import FileDraftRepository
from xray_drafts.repositories.implementations.file_settings_repository import FileSettingsRepository
from xray_drafts.repositories.interfaces.xray_service import IXrayService
from xray_drafts.services.draft_service import DraftService

VALID_CLIENT_ID = "client-id"
VALID_CLIENT_SECRET = "client-secret"


class FakeXrayService(IXrayService):
    """In-memory stand-in for Xray Cloud that records what it was asked to do"""

    def __init__(self):
        self.imports = []
        self.changes = []
        self.import_result = None

    async def validate_credentials(self, client_id, client_secret):
        if (client_id, client_secret) == (VALID_CLIENT_ID, VALID_CLIENT_SECRET):
            return ValidationResult(success=True)
        return ValidationResult(success=False, error="Invalid Client ID or Client Secret")

    async def import_drafts(self, drafts, project_key=None):
        self.imports.append(([d.id for d in drafts], project_key))
        if self.import_result is not None:
            return self.import_result
        target = project_key or drafts[0].project_key
        return ImportResult(
            success=True,
            job_id="job-1",
            test_issue_ids=[str(10001 + i) for i in range(len(drafts))],
            test_keys=[f"{target}-{i + 1}" for i in range(len(drafts))],
        )

    async def get_test_plans(self, project_key):
        return [XrayEntityWithCount(issue_id="200", key=f"{project_key}-20", summary="Release plan", test_count=3)]

    async def get_test_executions(self, project_key):
        return [XrayEntityWithCount(issue_id="300", key=f"{project_key}-30", summary="Nightly run", test_count=1)]

    async def get_test_sets(self, project_key):
        return []

    async def get_preconditions(self, project_key):
        return [XrayEntity(issue_id="400", key=f"{project_key}-40", summary="User is logged in")]

    async def get_folder(self, project_id, path="/"):
        return FolderNode(name="", path=path, tests_count=2, folders=[{"name": "Auth", "path": "/Auth"}])

    async def get_project_id(self, project_key):
        return "10000"

    async def change_entity_tests(self, entity, entity_id, test_issue_ids, add):
        self.changes.append((entity, entity_id, test_issue_ids, add))
        return {"addedTests" if add else "removedTests": test_issue_ids, "warning": None}

    async def change_folder_tests(self, project_id, folder_path, test_issue_ids, add):
        self.changes.append(("Folder", folder_path, test_issue_ids, add))
        return {"folder": {"path": folder_path}, "warnings": []}

    async def change_test_preconditions(self, test_issue_id, precondition_issue_ids, add):
        self.changes.append(("Precondition", test_issue_id, precondition_issue_ids, add))
        return {"addedPreconditions" if add else "removedPreconditions": precondition_issue_ids, "warning": None}


@pytest.fixture
def make_draft():
    """Factory for drafts with sensible defaults; keyword args use camelCase keys"""
    def _make(**overrides):
        data = {
            "id": "a1b2c3d4-0000-4000-8000-000000000001",
            "summary": "Auth | UI | Login works",
            "projectKey": "PROJ",
            "status": "draft",
            "steps": [{"id": "s1", "action": "Open the login page", "data": "", "result": "Form is shown"}],
            "updatedAt": 1700000000000,
        }
        data.update(overrides)
        return Draft.model_validate(data)
    return _make


@pytest.fixture
def drafts_root(tmp_path):
    return tmp_path / "testCases"


@pytest.fixture
def draft_repository(drafts_root):
    return FileDraftRepository(drafts_root)


@pytest.fixture
def settings_repository(tmp_path, drafts_root):
    return FileSettingsRepository(tmp_path / "config" / "settings.json", drafts_root)


@pytest.fixture
def credentials_repository(tmp_path):
    return FileCredentialsRepository(tmp_path / "config" / "xray-config.json")


@pytest.fixture
def fake_xray():
    return FakeXrayService()


@pytest.fixture
def draft_service(draft_repository, fake_xray):
    return DraftService(draft_repository=draft_repository, xray_service=fake_xray)


@pytest.fixture
def test_client(draft_repository, settings_repository, credentials_repository, fake_xray):
    """Synchronous test client wired to temporary stores"""
    rate_limiter = SlidingWindowRateLimiter(max_attempts=5, window_seconds=60)
    app.dependency_overrides[get_draft_repository] = lambda: draft_repository
    app.dependency_overrides[get_settings_repository] = lambda: settings_repository
    app.dependency_overrides[get_credentials_repository] = lambda: credentials_repository
    app.dependency_overrides[get_xray_service] = lambda: fake_xray
    app.dependency_overrides[get_connection_rate_limiter] = lambda: rate_limiter

    yield TestClient(app)

    app.dependency_overrides.clear()

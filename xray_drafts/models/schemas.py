from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Any
from enum import Enum


class CamelModel(BaseModel):
    """Base for documents stored and served with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self, **kwargs) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class StoredModel(CamelModel):
    """Part of a persisted draft. Unknown keys are kept as they are."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class DraftStatus(str, Enum):
    NEW = "new"
    DRAFT = "draft"
    READY = "ready"
    IMPORTED = "imported"


class TestType(str, Enum):
    MANUAL = "Manual"
    AUTOMATED = "Automated"


class TestStep(StoredModel):
    id: Optional[str] = Field(None, description="Client-side step identifier")
    action: Optional[str] = Field("", description="Action to be performed")
    data: Optional[str] = Field("", description="Test data required for this step")
    result: Optional[str] = Field("", description="Expected result of the action")


class Display(StoredModel):
    id: str
    display: str


class XrayLinking(StoredModel):
    test_plan_ids: List[str] = Field(default_factory=list)
    test_plan_displays: List[Display] = Field(default_factory=list)
    test_execution_ids: List[str] = Field(default_factory=list)
    test_execution_displays: List[Display] = Field(default_factory=list)
    test_set_ids: List[str] = Field(default_factory=list)
    test_set_displays: List[Display] = Field(default_factory=list)
    precondition_ids: List[str] = Field(default_factory=list)
    precondition_displays: List[Display] = Field(default_factory=list)
    folder_path: Optional[str] = ""
    project_id: Optional[str] = ""


class Draft(StoredModel):
    """A test case under construction.

    Unknown keys are kept so that fields added by newer UI versions survive a
    round trip through the store.
    """

    id: str = Field("", description="Opaque unique identifier")
    summary: Optional[str] = Field("", description="'area | layer | title'")
    description: Optional[str] = ""
    test_type: TestType = TestType.MANUAL
    priority: Optional[str] = ""
    labels: Optional[List[str]] = Field(default_factory=list)
    collection_id: Optional[str] = None
    steps: Optional[List[TestStep]] = Field(default_factory=list)
    xray_linking: Optional[XrayLinking] = None
    status: DraftStatus = DraftStatus.NEW
    updated_at: Optional[int] = Field(None, description="Epoch milliseconds")
    created_at: Optional[int] = Field(None, description="Epoch milliseconds")
    is_complete: Optional[bool] = False
    project_key: Optional[str] = None
    test_key: Optional[str] = None
    test_issue_id: Optional[str] = None


class Collection(CamelModel):
    id: str
    name: str
    color: str = ""


class ProjectSettings(CamelModel):
    functional_areas: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    collections: List[Collection] = Field(default_factory=list)
    color: str = ""
    reusable_prefix: str = "REUSE"


class AppSettings(CamelModel):
    projects: List[str] = Field(default_factory=list)
    hidden_projects: List[str] = Field(default_factory=list)
    active_project: Optional[str] = None
    project_settings: Dict[str, ProjectSettings] = Field(default_factory=dict)


class ProjectResult(CamelModel):
    success: bool
    already_exists: Optional[bool] = None
    error: Optional[str] = None


class AddProjectRequest(CamelModel):
    project_key: Optional[str] = None
    color: Optional[str] = None


class ActiveProjectRequest(CamelModel):
    project_key: Optional[str] = None


class XrayConfig(CamelModel):
    xray_client_id: str
    xray_client_secret: str
    jira_base_url: str


class CredentialsRequest(CamelModel):
    xray_client_id: Optional[str] = None
    xray_client_secret: Optional[str] = None
    jira_base_url: Optional[str] = None


class ValidationResult(CamelModel):
    success: bool
    error: Optional[str] = None


class ImportRequest(CamelModel):
    draft_ids: Optional[List[str]] = None
    project_key: Optional[str] = None


class ImportResult(CamelModel):
    success: bool
    job_id: Optional[str] = None
    test_issue_ids: Optional[List[str]] = None
    test_keys: Optional[List[str]] = None
    error: Optional[str] = None


class XrayEntity(CamelModel):
    issue_id: str
    key: str = ""
    summary: str = ""


class XrayEntityWithCount(XrayEntity):
    test_count: int = 0


class FolderNode(CamelModel):
    name: str = ""
    path: str = ""
    tests_count: int = 0
    folders: List[Any] = Field(default_factory=list)


class TestIdsRequest(CamelModel):
    test_issue_ids: Optional[List[str]] = None


class FolderTestsRequest(CamelModel):
    project_id: Optional[str] = None
    folder_path: Optional[str] = None
    test_issue_ids: Optional[List[str]] = None


class PreconditionIdsRequest(CamelModel):
    precondition_issue_ids: Optional[List[str]] = None


class CodeLanguage(str, Enum):
    JSON = "json"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PLAIN = "plain"


class CodeDetectionResult(CamelModel):
    is_code: bool
    language: CodeLanguage
    code_block: Optional[str] = None
    prefix_text: Optional[str] = None
    suffix_text: Optional[str] = None

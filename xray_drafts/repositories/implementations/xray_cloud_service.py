import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
import structlog

from xray_drafts.config.settings import settings
from xray_drafts.core.code_detection import format_data_for_xray
from xray_drafts.models.schemas import (
    Draft,
    FolderNode,
    ImportResult,
    ValidationResult,
    XrayConfig,
    XrayEntity,
    XrayEntityWithCount,
)
from xray_drafts.repositories.interfaces.credentials_repository import ICredentialsRepository
from xray_drafts.repositories.interfaces.xray_service import IXrayService

logger = structlog.get_logger()

AUTHENTICATE_PATH = "/api/v2/authenticate"
BULK_IMPORT_PATH = "/api/v1/import/test/bulk"
GRAPHQL_PATH = "/api/v2/graphql"

INVALID_CREDENTIALS = "Invalid client credentials"

# Entity types that tests can be added to or removed from by issue id
LINKABLE_ENTITIES = ("TestPlan", "TestExecution", "TestSet")

_ENTITY_LIST_QUERY = """
query List($jql: String!, $limit: Int!) {
  %(operation)s(jql: $jql, limit: $limit) {
    total
    results {
      issueId
      jira(fields: ["key", "summary"])
      %(extra)s
    }
  }
}
"""

_FOLDER_QUERY = """
query GetFolder($projectId: String!, $path: String!) {
  getFolder(projectId: $projectId, path: $path) {
    name
    path
    testsCount
    folders
  }
}
"""

_PROJECT_ID_QUERY = """
query GetProjectSettings($projectIdOrKey: String!) {
  getProjectSettings(projectIdOrKey: $projectIdOrKey) {
    projectId
  }
}
"""

_ENTITY_TESTS_MUTATION = """
mutation Change($issueId: String!, $testIssueIds: [String]!) {
  %(operation)s(issueId: $issueId, testIssueIds: $testIssueIds) {
    %(counter)s
    warning
  }
}
"""

_FOLDER_TESTS_MUTATION = """
mutation Change($projectId: String!, $path: String!, $testIssueIds: [String]!) {
  %(operation)s(projectId: $projectId, path: $path, testIssueIds: $testIssueIds) {
    folder {
      name
      path
      testsCount
    }
    warnings
  }
}
"""

_PRECONDITIONS_MUTATION = """
mutation Change($issueId: String!, $preconditionIssueIds: [String]!) {
  %(operation)s(issueId: $issueId, preconditionIssueIds: $preconditionIssueIds) {
    %(counter)s
    warning
  }
}
"""


class XrayServiceError(Exception):
    """Raised when an Xray API operation fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_message(exc: httpx.HTTPError) -> str:
    """Prefer the ``error`` field Xray puts in JSON error bodies"""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
            if isinstance(body, dict) and body.get("error"):
                return str(body["error"])
        except ValueError:
            pass
    return str(exc)


def to_bulk_import_payload(drafts: List[Draft], project_key: str) -> List[Dict[str, Any]]:
    return [
        {
            "testtype": draft.test_type.value,
            "fields": {
                "summary": draft.summary or "",
                "project": {"key": project_key},
                "description": draft.description or "",
                "labels": draft.labels or [],
            },
            "steps": [
                {
                    "action": step.action or "",
                    "data": format_data_for_xray(step.data or ""),
                    "result": step.result or "",
                }
                for step in draft.steps or []
            ],
        }
        for draft in drafts
    ]


def _job_error(result: Any) -> str:
    if isinstance(result, str):
        return result or "Import job failed"
    if isinstance(result, dict):
        if result.get("error"):
            return str(result["error"])
        if result.get("message"):
            return str(result["message"])
        if result.get("errors"):
            return ", ".join(str(e) for e in result["errors"])
    return json.dumps(result) if result else "Import job failed"


class XrayCloudService(IXrayService):
    """Xray Cloud REST and GraphQL client.

    Every operation authenticates with the stored client credentials; tokens
    are not cached between operations.
    """

    def __init__(
        self,
        credentials_repository: ICredentialsRepository,
        base_url: str = settings.xray_base_url,
        timeout: float = settings.xray_request_timeout_seconds,
        import_timeout: float = settings.xray_import_timeout_seconds,
        poll_attempts: int = settings.xray_job_poll_attempts,
        poll_interval: float = settings.xray_job_poll_interval_seconds,
        page_limit: int = settings.xray_graphql_page_limit,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials_repository = credentials_repository
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.import_timeout = import_timeout
        self.poll_attempts = poll_attempts
        self.poll_interval = poll_interval
        self.page_limit = page_limit
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={"Content-Type": "application/json"},
        )

    async def _authenticate(self, client: httpx.AsyncClient, client_id: str, client_secret: str) -> str:
        response = await client.post(
            AUTHENTICATE_PATH,
            json={"client_id": client_id, "client_secret": client_secret},
        )
        response.raise_for_status()
        token = response.json()
        if not token:
            raise XrayServiceError("No token received", status_code=response.status_code)
        return token

    async def _authenticated(self, client: httpx.AsyncClient, config: XrayConfig) -> Dict[str, str]:
        token = await self._authenticate(client, config.xray_client_id, config.xray_client_secret)
        return {"Authorization": f"Bearer {token}"}

    async def validate_credentials(self, client_id: str, client_secret: str) -> ValidationResult:
        try:
            async with self._client() as client:
                await self._authenticate(client, client_id, client_secret)
            return ValidationResult(success=True)
        except XrayServiceError:
            return ValidationResult(success=False, error="Authentication failed: No token received")
        except httpx.HTTPError as e:
            message = _error_message(e)
            logger.warning("Xray credential validation failed", error=message)
            if INVALID_CREDENTIALS in message:
                return ValidationResult(success=False, error="Invalid Client ID or Client Secret")
            return ValidationResult(success=False, error=f"Authentication failed: {message}")

    async def import_drafts(self, drafts: List[Draft], project_key: Optional[str] = None) -> ImportResult:
        """Bulk import drafts and poll the import job until it settles"""
        config = await self.credentials_repository.read()
        if not config:
            return ImportResult(success=False, error="Config not found")

        async with self._client() as client:
            try:
                headers = await self._authenticated(client, config)
            except (httpx.HTTPError, XrayServiceError) as e:
                message = _error_message(e) if isinstance(e, httpx.HTTPError) else str(e)
                if INVALID_CREDENTIALS in message:
                    return ImportResult(success=False, error="Authentication failed: Invalid client credentials")
                return ImportResult(success=False, error=f"Authentication failed: {message}")

            target_project = project_key or (drafts[0].project_key if drafts else None)
            if not target_project:
                return ImportResult(success=False, error="No project key specified")

            try:
                response = await client.post(
                    BULK_IMPORT_PATH,
                    json=to_bulk_import_payload(drafts, target_project),
                    headers=headers,
                    timeout=self.import_timeout,
                )
                response.raise_for_status()
                job_id = response.json().get("jobId")
            except httpx.HTTPError as e:
                logger.error("Xray bulk import failed", project_key=target_project, error=_error_message(e))
                return ImportResult(success=False, error=f"Import failed: {_error_message(e)}")

            if not job_id:
                return ImportResult(success=False, error="Import completed but no jobId returned")

            logger.info("Xray bulk import started", job_id=job_id, project_key=target_project, count=len(drafts))
            return await self._wait_for_job(client, headers, job_id)

    async def _wait_for_job(self, client: httpx.AsyncClient, headers: Dict[str, str], job_id: str) -> ImportResult:
        for _ in range(self.poll_attempts):
            try:
                response = await client.get(f"{BULK_IMPORT_PATH}/{job_id}/status", headers=headers)
                response.raise_for_status()
                body = response.json()
            except httpx.HTTPError as e:
                return ImportResult(success=False, job_id=job_id, error=f"Failed to get job status: {_error_message(e)}")

            status = body.get("status")
            result = body.get("result") or {}

            if status == "successful":
                issues = result.get("issues") or result.get("createdIssues") or []
                logger.info("Xray import job finished", job_id=job_id, created=len(issues))
                return ImportResult(
                    success=True,
                    job_id=job_id,
                    test_issue_ids=[str(issue.get("id")) for issue in issues],
                    test_keys=[issue.get("key") for issue in issues],
                )

            if status == "failed":
                logger.error("Xray import job failed", job_id=job_id, result=result)
                return ImportResult(success=False, job_id=job_id, error=_job_error(result))

            await asyncio.sleep(self.poll_interval)

        return ImportResult(success=False, job_id=job_id, error="Job status polling timed out")

    async def _graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        config = await self.credentials_repository.read()
        if not config:
            raise XrayServiceError("Config not found")

        try:
            async with self._client() as client:
                headers = await self._authenticated(client, config)
                response = await client.post(
                    GRAPHQL_PATH,
                    json={"query": query, "variables": variables},
                    headers=headers,
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPError as e:
            raise XrayServiceError(_error_message(e)) from e

        errors = body.get("errors")
        if errors:
            raise XrayServiceError(errors[0].get("message") or "GraphQL error")
        return body.get("data") or {}

    async def _list_entities(self, operation: str, project_key: str, with_count: bool) -> List[Dict[str, Any]]:
        query = _ENTITY_LIST_QUERY % {
            "operation": operation,
            "extra": "tests(limit: 1) {\n        total\n      }" if with_count else "",
        }
        data = await self._graphql(query, {"jql": f"project = '{project_key}'", "limit": self.page_limit})
        results = (data.get(operation) or {}).get("results") or []
        entities = []
        for item in results:
            jira = item.get("jira") or {}
            entity = {"issue_id": item.get("issueId"), "key": jira.get("key", ""), "summary": jira.get("summary", "")}
            if with_count:
                entity["test_count"] = (item.get("tests") or {}).get("total", 0)
            entities.append(entity)
        return entities

    async def get_test_plans(self, project_key: str) -> List[XrayEntityWithCount]:
        return [XrayEntityWithCount(**e) for e in await self._list_entities("getTestPlans", project_key, True)]

    async def get_test_executions(self, project_key: str) -> List[XrayEntityWithCount]:
        return [XrayEntityWithCount(**e) for e in await self._list_entities("getTestExecutions", project_key, True)]

    async def get_test_sets(self, project_key: str) -> List[XrayEntityWithCount]:
        return [XrayEntityWithCount(**e) for e in await self._list_entities("getTestSets", project_key, True)]

    async def get_preconditions(self, project_key: str) -> List[XrayEntity]:
        return [XrayEntity(**e) for e in await self._list_entities("getPreconditions", project_key, False)]

    async def get_folder(self, project_id: str, path: str = "/") -> FolderNode:
        data = await self._graphql(_FOLDER_QUERY, {"projectId": project_id, "path": path})
        return FolderNode.model_validate(data.get("getFolder") or {})

    async def get_project_id(self, project_key: str) -> str:
        data = await self._graphql(_PROJECT_ID_QUERY, {"projectIdOrKey": project_key})
        project_id = (data.get("getProjectSettings") or {}).get("projectId")
        if not project_id:
            raise XrayServiceError(f"Could not resolve project ID for {project_key}")
        return project_id

    async def change_entity_tests(self, entity: str, entity_id: str, test_issue_ids: List[str], add: bool) -> dict:
        if entity not in LINKABLE_ENTITIES:
            raise ValueError(f"Unsupported Xray entity: {entity}")
        operation = f"addTestsTo{entity}" if add else f"removeTestsFrom{entity}"
        query = _ENTITY_TESTS_MUTATION % {
            "operation": operation,
            "counter": "addedTests" if add else "removedTests",
        }
        data = await self._graphql(query, {"issueId": entity_id, "testIssueIds": test_issue_ids})
        logger.info("Xray tests changed", operation=operation, entity_id=entity_id, count=len(test_issue_ids))
        return data.get(operation) or {}

    async def change_folder_tests(self, project_id: str, folder_path: str, test_issue_ids: List[str], add: bool) -> dict:
        operation = "addTestsToFolder" if add else "removeTestsFromFolder"
        query = _FOLDER_TESTS_MUTATION % {"operation": operation}
        data = await self._graphql(
            query, {"projectId": project_id, "path": folder_path, "testIssueIds": test_issue_ids}
        )
        return data.get(operation) or {}

    async def change_test_preconditions(self, test_issue_id: str, precondition_issue_ids: List[str], add: bool) -> dict:
        operation = "addPreconditionsToTest" if add else "removePreconditionsFromTest"
        query = _PRECONDITIONS_MUTATION % {
            "operation": operation,
            "counter": "addedPreconditions" if add else "removedPreconditions",
        }
        data = await self._graphql(
            query, {"issueId": test_issue_id, "preconditionIssueIds": precondition_issue_ids}
        )
        return data.get(operation) or {}

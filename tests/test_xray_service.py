import json

import httpx
import pytest

from xray_drafts.models.schemas import XrayConfig
from xray_drafts.repositories.implementations.xray_cloud_service import (
    AUTHENTICATE_PATH, BULK_IMPORT_PATH, GRAPHQL_PATH, XrayCloudService, XrayServiceError
)


class XrayStub:
    """Scripted Xray Cloud endpoints for httpx.MockTransport"""

    def __init__(self, job_statuses=None, graphql_body=None):
        self.job_statuses = list(job_statuses or [])
        self.graphql_body = graphql_body or {"data": {}}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == AUTHENTICATE_PATH:
            body = json.loads(request.content)
            if body["client_secret"] != "secret":
                return httpx.Response(401, json={"error": "Invalid client credentials"})
            return httpx.Response(200, json="token-123")

        assert request.headers["Authorization"] == "Bearer token-123"

        if path == BULK_IMPORT_PATH:
            return httpx.Response(200, json={"jobId": "job-1"})
        if path == f"{BULK_IMPORT_PATH}/job-1/status":
            status = self.job_statuses.pop(0) if len(self.job_statuses) > 1 else self.job_statuses[0]
            return httpx.Response(200, json=status)
        if path == GRAPHQL_PATH:
            return httpx.Response(200, json=self.graphql_body)
        return httpx.Response(404, json={"error": "Not found"})

    def sent_json(self, path):
        return [json.loads(r.content) for r in self.requests if r.url.path == path]


async def configure(credentials_repository, secret="secret"):
    await credentials_repository.write(XrayConfig(
        xray_client_id="client", xray_client_secret=secret, jira_base_url="https://acme.atlassian.net"
    ))


def make_service(credentials_repository, stub, **kwargs):
    return XrayCloudService(
        credentials_repository,
        base_url="https://xray.test",
        poll_interval=0,
        transport=httpx.MockTransport(stub),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_validate_credentials(credentials_repository):
    service = make_service(credentials_repository, XrayStub())

    assert (await service.validate_credentials("client", "secret")).success

    result = await service.validate_credentials("client", "wrong")
    assert result.success is False
    assert result.error == "Invalid Client ID or Client Secret"


@pytest.mark.asyncio
async def test_import_without_config(credentials_repository, make_draft):
    service = make_service(credentials_repository, XrayStub())

    result = await service.import_drafts([make_draft()], "PROJ")

    assert result.success is False
    assert result.error == "Config not found"


@pytest.mark.asyncio
async def test_import_polls_until_job_succeeds(credentials_repository, make_draft):
    await configure(credentials_repository)
    stub = XrayStub(job_statuses=[
        {"status": "working"},
        {"status": "successful", "result": {"issues": [{"id": 10001, "key": "PROJ-1"}]}},
    ])
    service = make_service(credentials_repository, stub)
    draft = make_draft(
        labels=["smoke"],
        steps=[{"action": "POST /login", "data": '{"user": "alice"}', "result": "200 OK"}],
    )

    result = await service.import_drafts([draft], "PROJ")

    assert result.success
    assert result.job_id == "job-1"
    assert result.test_keys == ["PROJ-1"]
    assert result.test_issue_ids == ["10001"]

    [payload] = stub.sent_json(BULK_IMPORT_PATH)
    assert payload[0]["testtype"] == "Manual"
    assert payload[0]["fields"]["project"] == {"key": "PROJ"}
    assert payload[0]["fields"]["labels"] == ["smoke"]
    assert payload[0]["steps"][0]["data"] == '{code:json}\n{"user": "alice"}\n{code}'


@pytest.mark.asyncio
async def test_import_uses_draft_project_when_none_given(credentials_repository, make_draft):
    await configure(credentials_repository)
    stub = XrayStub(job_statuses=[{"status": "successful", "result": {"createdIssues": []}}])
    service = make_service(credentials_repository, stub)

    result = await service.import_drafts([make_draft(projectKey="ACME")])

    assert result.success
    assert stub.sent_json(BULK_IMPORT_PATH)[0][0]["fields"]["project"] == {"key": "ACME"}


@pytest.mark.asyncio
async def test_import_without_project_key(credentials_repository, make_draft):
    await configure(credentials_repository)
    service = make_service(credentials_repository, XrayStub())

    result = await service.import_drafts([make_draft(projectKey=None)])

    assert result.error == "No project key specified"


@pytest.mark.asyncio
async def test_import_reports_job_failure(credentials_repository, make_draft):
    await configure(credentials_repository)
    stub = XrayStub(job_statuses=[{"status": "failed", "result": {"errors": ["Summary is required"]}}])
    service = make_service(credentials_repository, stub)

    result = await service.import_drafts([make_draft()], "PROJ")

    assert result.success is False
    assert result.job_id == "job-1"
    assert result.error == "Summary is required"


@pytest.mark.asyncio
async def test_import_times_out(credentials_repository, make_draft):
    await configure(credentials_repository)
    stub = XrayStub(job_statuses=[{"status": "working"}])
    service = make_service(credentials_repository, stub, poll_attempts=3)

    result = await service.import_drafts([make_draft()], "PROJ")

    assert result.error == "Job status polling timed out"
    status_polls = [r for r in stub.requests if r.url.path.endswith("/status")]
    assert len(status_polls) == 3


@pytest.mark.asyncio
async def test_import_with_rejected_credentials(credentials_repository, make_draft):
    await configure(credentials_repository, secret="stale")
    service = make_service(credentials_repository, XrayStub())

    result = await service.import_drafts([make_draft()], "PROJ")

    assert result.error == "Authentication failed: Invalid client credentials"


@pytest.mark.asyncio
async def test_get_test_plans(credentials_repository):
    await configure(credentials_repository)
    stub = XrayStub(graphql_body={"data": {"getTestPlans": {"total": 1, "results": [
        {"issueId": "200", "jira": {"key": "PROJ-20", "summary": "Release plan"}, "tests": {"total": 4}},
    ]}}})
    service = make_service(credentials_repository, stub)

    [plan] = await service.get_test_plans("PROJ")

    assert (plan.issue_id, plan.key, plan.summary, plan.test_count) == ("200", "PROJ-20", "Release plan", 4)
    [request] = stub.sent_json(GRAPHQL_PATH)
    assert request["variables"]["jql"] == "project = 'PROJ'"
    assert "getTestPlans" in request["query"]


@pytest.mark.asyncio
async def test_graphql_errors_raise(credentials_repository):
    await configure(credentials_repository)
    stub = XrayStub(graphql_body={"errors": [{"message": "Project not found"}]})
    service = make_service(credentials_repository, stub)

    with pytest.raises(XrayServiceError, match="Project not found"):
        await service.get_project_id("NOPE")


@pytest.mark.asyncio
async def test_add_tests_to_test_set(credentials_repository):
    await configure(credentials_repository)
    stub = XrayStub(graphql_body={"data": {"addTestsToTestSet": {"addedTests": ["10001"], "warning": None}}})
    service = make_service(credentials_repository, stub)

    result = await service.change_entity_tests("TestSet", "500", ["10001"], add=True)

    assert result == {"addedTests": ["10001"], "warning": None}
    [request] = stub.sent_json(GRAPHQL_PATH)
    assert request["variables"] == {"issueId": "500", "testIssueIds": ["10001"]}


@pytest.mark.asyncio
async def test_unsupported_entity_is_rejected(credentials_repository):
    service = make_service(credentials_repository, XrayStub())

    with pytest.raises(ValueError):
        await service.change_entity_tests("Precondition", "500", ["10001"], add=True)

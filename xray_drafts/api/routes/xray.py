from fastapi import APIRouter, Depends, HTTPException, status
import structlog

from xray_drafts.models.schemas import (
    FolderTestsRequest, ImportRequest, PreconditionIdsRequest, TestIdsRequest
)
from xray_drafts.repositories.interfaces.xray_service import IXrayService
from xray_drafts.services.draft_service import DraftService, DraftValidationError
from xray_drafts.core.dependencies import get_draft_service, get_xray_service

logger = structlog.get_logger()

router = APIRouter(prefix="/xray", tags=["xray"])

# URL segment -> Xray entity type
ENTITY_PATHS = {
    "test-plans": "TestPlan",
    "test-executions": "TestExecution",
    "test-sets": "TestSet",
}


def _failed(message: str, error: Exception, **context) -> HTTPException:
    logger.error(message, error=str(error), **context)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.post("/import")
async def import_to_xray(
    request: ImportRequest,
    service: DraftService = Depends(get_draft_service)
):
    """Import drafts into Xray and mark them as imported"""
    try:
        result = await service.import_to_xray(request.draft_ids, request.project_key)
    except DraftValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        raise _failed("Failed to import to Xray", e)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No valid drafts found")
    return result.to_document(exclude_none=True)


@router.get("/test-plans/{project_key}")
async def get_test_plans(project_key: str, xray: IXrayService = Depends(get_xray_service)):
    try:
        return [entity.to_document() for entity in await xray.get_test_plans(project_key)]
    except Exception as e:
        raise _failed("Failed to fetch test plans", e, project_key=project_key)


@router.get("/test-executions/{project_key}")
async def get_test_executions(project_key: str, xray: IXrayService = Depends(get_xray_service)):
    try:
        return [entity.to_document() for entity in await xray.get_test_executions(project_key)]
    except Exception as e:
        raise _failed("Failed to fetch test executions", e, project_key=project_key)


@router.get("/test-sets/{project_key}")
async def get_test_sets(project_key: str, xray: IXrayService = Depends(get_xray_service)):
    try:
        return [entity.to_document() for entity in await xray.get_test_sets(project_key)]
    except Exception as e:
        raise _failed("Failed to fetch test sets", e, project_key=project_key)


@router.get("/preconditions/{project_key}")
async def get_preconditions(project_key: str, xray: IXrayService = Depends(get_xray_service)):
    try:
        return [entity.to_document() for entity in await xray.get_preconditions(project_key)]
    except Exception as e:
        raise _failed("Failed to fetch preconditions", e, project_key=project_key)


@router.get("/project-id/{project_key}")
async def get_project_id(project_key: str, xray: IXrayService = Depends(get_xray_service)):
    try:
        return {"projectId": await xray.get_project_id(project_key)}
    except Exception as e:
        raise _failed("Failed to fetch project ID", e, project_key=project_key)


@router.get("/folders/{project_id}")
async def get_folder(project_id: str, path: str = "/", xray: IXrayService = Depends(get_xray_service)):
    try:
        folder = await xray.get_folder(project_id, path or "/")
        return folder.to_document()
    except Exception as e:
        raise _failed("Failed to fetch folders", e, project_id=project_id, path=path)


async def _change_entity_tests(entity_path: str, entity_id: str, request: TestIdsRequest, add: bool, xray: IXrayService):
    entity = ENTITY_PATHS.get(entity_path)
    if not entity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown Xray entity: {entity_path}")
    if request.test_issue_ids is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="testIssueIds array is required")
    try:
        return await xray.change_entity_tests(entity, entity_id, request.test_issue_ids, add)
    except Exception as e:
        action = "add tests to" if add else "remove tests from"
        raise _failed(f"Failed to {action} {entity_path[:-1].replace('-', ' ')}", e, entity_id=entity_id)


@router.post("/folders/add-tests")
async def add_tests_to_folder(request: FolderTestsRequest, xray: IXrayService = Depends(get_xray_service)):
    if not request.project_id or not request.folder_path or request.test_issue_ids is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="projectId, folderPath, and testIssueIds are required")
    try:
        return await xray.change_folder_tests(request.project_id, request.folder_path, request.test_issue_ids, add=True)
    except Exception as e:
        raise _failed("Failed to add tests to folder", e, folder_path=request.folder_path)


@router.delete("/folders/remove-tests")
async def remove_tests_from_folder(request: FolderTestsRequest, xray: IXrayService = Depends(get_xray_service)):
    if not request.project_id or not request.folder_path or request.test_issue_ids is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="projectId, folderPath, and testIssueIds are required")
    try:
        return await xray.change_folder_tests(request.project_id, request.folder_path, request.test_issue_ids, add=False)
    except Exception as e:
        raise _failed("Failed to remove tests from folder", e, folder_path=request.folder_path)


@router.post("/tests/{test_issue_id}/add-preconditions")
async def add_preconditions_to_test(
    test_issue_id: str,
    request: PreconditionIdsRequest,
    xray: IXrayService = Depends(get_xray_service)
):
    if request.precondition_issue_ids is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="preconditionIssueIds array is required")
    try:
        return await xray.change_test_preconditions(test_issue_id, request.precondition_issue_ids, add=True)
    except Exception as e:
        raise _failed("Failed to add preconditions to test", e, test_issue_id=test_issue_id)


@router.delete("/tests/{test_issue_id}/remove-preconditions")
async def remove_preconditions_from_test(
    test_issue_id: str,
    request: PreconditionIdsRequest,
    xray: IXrayService = Depends(get_xray_service)
):
    if request.precondition_issue_ids is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="preconditionIssueIds array is required")
    try:
        return await xray.change_test_preconditions(test_issue_id, request.precondition_issue_ids, add=False)
    except Exception as e:
        raise _failed("Failed to remove preconditions from test", e, test_issue_id=test_issue_id)


@router.post("/{entity_path}/{entity_id}/add-tests")
async def add_tests(
    entity_path: str,
    entity_id: str,
    request: TestIdsRequest,
    xray: IXrayService = Depends(get_xray_service)
):
    """Add tests to a test plan, test execution or test set"""
    return await _change_entity_tests(entity_path, entity_id, request, True, xray)


@router.delete("/{entity_path}/{entity_id}/remove-tests")
async def remove_tests(
    entity_path: str,
    entity_id: str,
    request: TestIdsRequest,
    xray: IXrayService = Depends(get_xray_service)
):
    """Remove tests from a test plan, test execution or test set"""
    return await _change_entity_tests(entity_path, entity_id, request, False, xray)

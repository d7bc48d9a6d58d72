import pytest

from xray_drafts.models.schemas import DraftStatus, ImportResult
from xray_drafts.services.draft_service import (
    DraftValidationError, InvalidStatusTransitionError, can_transition
)

DRAFT_ID = "a1b2c3d4-0000-4000-8000-000000000001"


@pytest.mark.parametrize("current,target,allowed", [
    (DraftStatus.NEW, DraftStatus.READY, True),
    (DraftStatus.READY, DraftStatus.DRAFT, True),
    (DraftStatus.DRAFT, DraftStatus.IMPORTED, True),
    (DraftStatus.IMPORTED, DraftStatus.IMPORTED, True),
    (DraftStatus.IMPORTED, DraftStatus.DRAFT, False),
    (DraftStatus.IMPORTED, DraftStatus.NEW, False),
])
def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed


@pytest.mark.asyncio
async def test_save_requires_id(draft_service, make_draft):
    with pytest.raises(DraftValidationError, match="Draft must have an id"):
        await draft_service.save_draft(make_draft(id=""))


@pytest.mark.asyncio
async def test_update_requires_matching_id(draft_service, make_draft):
    with pytest.raises(DraftValidationError, match="Draft id mismatch"):
        await draft_service.save_draft(make_draft(), path_id="someone-else")


@pytest.mark.asyncio
async def test_save_returns_path_and_draft(draft_service, drafts_root, make_draft):
    file_path, saved = await draft_service.save_draft(make_draft())

    assert file_path == drafts_root / "PROJ" / "Auth" / "login-works-a1b2c3d4.json"
    assert saved.id == DRAFT_ID
    assert (await draft_service.get_draft(DRAFT_ID)).summary == "Auth | UI | Login works"


@pytest.mark.asyncio
async def test_imported_draft_cannot_be_reopened(draft_service, make_draft):
    await draft_service.save_draft(make_draft(status="imported", testKey="PROJ-1"))

    with pytest.raises(InvalidStatusTransitionError):
        await draft_service.save_draft(make_draft(status="draft"), path_id=DRAFT_ID)

    # Edits that keep the imported status are fine
    await draft_service.save_draft(make_draft(status="imported", description="Updated"), path_id=DRAFT_ID)
    assert (await draft_service.get_draft(DRAFT_ID)).description == "Updated"


@pytest.mark.asyncio
async def test_import_requires_ids(draft_service):
    with pytest.raises(DraftValidationError):
        await draft_service.import_to_xray([], "PROJ")
    with pytest.raises(DraftValidationError):
        await draft_service.import_to_xray(None, "PROJ")


@pytest.mark.asyncio
async def test_import_with_only_unknown_ids_returns_none(draft_service, fake_xray):
    assert await draft_service.import_to_xray(["missing"], "PROJ") is None
    assert fake_xray.imports == []


@pytest.mark.asyncio
async def test_import_marks_drafts_imported(draft_service, fake_xray, make_draft):
    await draft_service.save_draft(make_draft(updatedAt=1))
    await draft_service.save_draft(make_draft(id="b2c3d4e5-0000", summary="Auth | UI | Logout", updatedAt=1))

    result = await draft_service.import_to_xray([DRAFT_ID, "missing", "b2c3d4e5-0000"], "PROJ")

    assert result.success
    assert fake_xray.imports == [([DRAFT_ID, "b2c3d4e5-0000"], "PROJ")]
    first = await draft_service.get_draft(DRAFT_ID)
    second = await draft_service.get_draft("b2c3d4e5-0000")
    assert (first.status, first.test_key, first.test_issue_id) == (DraftStatus.IMPORTED, "PROJ-1", "10001")
    assert (second.status, second.test_key, second.test_issue_id) == (DraftStatus.IMPORTED, "PROJ-2", "10002")
    assert first.updated_at > 1


@pytest.mark.asyncio
async def test_failed_import_leaves_drafts_untouched(draft_service, fake_xray, make_draft):
    await draft_service.save_draft(make_draft())
    fake_xray.import_result = ImportResult(success=False, job_id="job-9", error="Bad summary")

    result = await draft_service.import_to_xray([DRAFT_ID], "PROJ")

    assert result.success is False
    assert result.error == "Bad summary"
    draft = await draft_service.get_draft(DRAFT_ID)
    assert draft.status == DraftStatus.DRAFT
    assert draft.test_key is None


@pytest.mark.asyncio
@pytest.mark.parametrize("project_key", ["A/B", "..", ".", "..\\up"])
async def test_path_like_project_key_is_rejected_before_writing(draft_service, drafts_root, make_draft, project_key):
    with pytest.raises(DraftValidationError, match="Invalid project key"):
        await draft_service.save_draft(make_draft(projectKey=project_key))

    assert not drafts_root.exists()

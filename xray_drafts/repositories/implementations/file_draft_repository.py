import json
import shutil
import threading
from pathlib import Path
from typing import Iterator, List, Optional

import structlog
from pydantic import ValidationError

from xray_drafts.core.naming import DEFAULT_PROJECT, SHORT_ID_LENGTH, draft_path, parse_summary
from xray_drafts.models.schemas import Draft
from xray_drafts.repositories.interfaces.draft_repository import IDraftRepository, LocatedDraft

logger = structlog.get_logger()


class FileDraftRepository(IDraftRepository):
    """Stores each draft as a pretty-printed JSON file.

    Layout is ``<root>/<projectKey>/<area>/<slug>-<id8>.json``. The path is
    derived from the draft's metadata and is never the source of truth, so
    lookups by id scan the tree instead of keeping an index.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._lock = threading.Lock()

    def path_for(self, draft: Draft, draft_id: str) -> Path:
        area, title = parse_summary(draft.summary or "")
        project_key = draft.project_key or DEFAULT_PROJECT
        return draft_path(self.root, project_key, area, title, draft_id)

    async def locate(self, draft_id: str) -> Optional[LocatedDraft]:
        return self._locate(draft_id)

    def _locate(self, draft_id: str) -> Optional[LocatedDraft]:
        """Find a draft by id.

        Only files whose name contains the first eight characters of the id
        are parsed. Unreadable files are skipped.
        """
        if not self.root.exists():
            return None

        short_id = draft_id[:SHORT_ID_LENGTH]
        for project_dir in self._subdirs(self.root):
            for area_dir in self._subdirs(project_dir):
                for file_path in self._draft_files(area_dir):
                    if short_id not in file_path.name:
                        continue
                    draft = self._load(file_path)
                    if draft is not None and draft.id == draft_id:
                        return LocatedDraft(draft, file_path)
        return None

    async def read(self, draft_id: str) -> Optional[Draft]:
        located = await self.locate(draft_id)
        return located.draft if located else None

    async def list(self, project_key: Optional[str] = None) -> List[Draft]:
        """List drafts of one project, or of every project, newest first"""
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            return []

        if project_key:
            project_dirs = [self.root / project_key]
        else:
            project_dirs = list(self._subdirs(self.root))

        drafts: List[Draft] = []
        for project_dir in project_dirs:
            if not project_dir.is_dir():
                continue
            for area_dir in self._subdirs(project_dir):
                for file_path in self._draft_files(area_dir):
                    draft = self._load(file_path)
                    if draft is not None:
                        drafts.append(draft)

        return sorted(drafts, key=lambda d: d.updated_at or 0, reverse=True)

    async def write(self, draft_id: str, draft: Draft) -> Path:
        file_path = self.path_for(draft, draft_id)

        with self._lock:
            existing = self._locate(draft_id)
            if existing and existing.file_path != file_path:
                existing.file_path.unlink()
                self._prune_empty_dirs(existing.file_path.parent)
                logger.info(
                    "Draft relocated",
                    draft_id=draft_id,
                    old_path=str(existing.file_path),
                    new_path=str(file_path),
                )

            file_path.parent.mkdir(parents=True, exist_ok=True)
            document = draft.to_document(exclude_unset=True)
            file_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")

        logger.info("Draft written", draft_id=draft_id, path=str(file_path))
        return file_path

    async def delete(self, draft_id: str) -> bool:
        with self._lock:
            existing = self._locate(draft_id)
            if not existing:
                return False

            existing.file_path.unlink()
            self._prune_empty_dirs(existing.file_path.parent)

        logger.info("Draft deleted", draft_id=draft_id, path=str(existing.file_path))
        return True

    async def delete_all(self) -> None:
        with self._lock:
            if self.root.exists():
                shutil.rmtree(self.root)
            self.root.mkdir(parents=True, exist_ok=True)
        logger.warning("All drafts deleted", root=str(self.root))

    def _prune_empty_dirs(self, directory: Path) -> None:
        """Remove empty directories from ``directory`` upwards, stopping below the root."""
        root = self.root.resolve()
        current = directory.resolve()
        while current != root and root in current.parents:
            try:
                if any(current.iterdir()):
                    return
                current.rmdir()
            except OSError as e:
                logger.debug("Stopped pruning draft directories", path=str(current), error=str(e))
                return
            current = current.parent

    @staticmethod
    def _subdirs(directory: Path) -> Iterator[Path]:
        return (entry for entry in sorted(directory.iterdir()) if entry.is_dir())

    @staticmethod
    def _draft_files(directory: Path) -> Iterator[Path]:
        return (entry for entry in sorted(directory.iterdir()) if entry.is_file() and entry.suffix == ".json")

    @staticmethod
    def _load(file_path: Path) -> Optional[Draft]:
        try:
            return Draft.model_validate(json.loads(file_path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Skipping unreadable draft file", path=str(file_path), error=str(e))
            return None

import json
import threading
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import ValidationError

from xray_drafts.models.schemas import AppSettings, ProjectResult, ProjectSettings
from xray_drafts.repositories.interfaces.settings_repository import ISettingsRepository

logger = structlog.get_logger()

PASTEL_COLORS = [
    "#a5c7e9", "#a8e6cf", "#c9b8e8", "#ffd3b6",
    "#ffb6c1", "#f5b5b5", "#f9e9a1", "#a8e0e0",
]


def _first_visible(app_settings: AppSettings) -> Optional[str]:
    visible = [p for p in app_settings.projects if p not in app_settings.hidden_projects]
    return visible[0] if visible else None


class FileSettingsRepository(ISettingsRepository):
    """Settings document kept in a single JSON file.

    Known projects are reconciled against the project directories under the
    drafts root, so folders deleted by hand disappear from the sidebar.
    """

    def __init__(self, settings_path: Path, drafts_root: Path):
        self.settings_path = Path(settings_path)
        self.drafts_root = Path(drafts_root)
        self._lock = threading.Lock()

    async def read(self) -> AppSettings:
        return self._read()

    async def write(self, app_settings: AppSettings) -> None:
        with self._lock:
            self._write(app_settings)

    async def sync_with_filesystem(self) -> bool:
        with self._lock:
            return self._sync()

    async def get_synced(self) -> AppSettings:
        with self._lock:
            self._sync()
            return self._read()

    async def add_project(self, project_key: str, color: Optional[str] = None) -> ProjectResult:
        with self._lock:
            app_settings = self._read()

            if project_key in app_settings.projects:
                app_settings.hidden_projects = [p for p in app_settings.hidden_projects if p != project_key]
                self._write(app_settings)
                return ProjectResult(success=True, already_exists=True)

            app_settings.projects.append(project_key)
            assigned_color = color or PASTEL_COLORS[(len(app_settings.projects) - 1) % len(PASTEL_COLORS)]
            app_settings.project_settings[project_key] = ProjectSettings(color=assigned_color)

            if not app_settings.active_project:
                app_settings.active_project = project_key

            self._write(app_settings)
            (self.drafts_root / project_key).mkdir(parents=True, exist_ok=True)

        logger.info("Project added", project_key=project_key, color=assigned_color)
        return ProjectResult(success=True)

    async def hide_project(self, project_key: str) -> ProjectResult:
        with self._lock:
            app_settings = self._read()
            if project_key not in app_settings.hidden_projects:
                app_settings.hidden_projects.append(project_key)
            if app_settings.active_project == project_key:
                app_settings.active_project = _first_visible(app_settings)
            self._write(app_settings)
        return ProjectResult(success=True)

    async def unhide_project(self, project_key: str) -> ProjectResult:
        with self._lock:
            app_settings = self._read()
            app_settings.hidden_projects = [p for p in app_settings.hidden_projects if p != project_key]
            self._write(app_settings)
        return ProjectResult(success=True)

    async def set_active_project(self, project_key: str) -> ProjectResult:
        with self._lock:
            app_settings = self._read()
            if project_key not in app_settings.projects:
                return ProjectResult(success=False, error="Project not found")
            if project_key in app_settings.hidden_projects:
                return ProjectResult(success=False, error="Project is hidden")
            app_settings.active_project = project_key
            self._write(app_settings)
        return ProjectResult(success=True)

    async def remove_project(self, project_key: str) -> ProjectResult:
        """Forget a project. Its draft directory is left on disk."""
        with self._lock:
            app_settings = self._read()
            app_settings.projects = [p for p in app_settings.projects if p != project_key]
            app_settings.hidden_projects = [p for p in app_settings.hidden_projects if p != project_key]
            app_settings.project_settings.pop(project_key, None)
            if app_settings.active_project == project_key:
                app_settings.active_project = _first_visible(app_settings)
            self._write(app_settings)

        logger.info("Project removed", project_key=project_key)
        return ProjectResult(success=True)

    async def get_project_settings(self, project_key: str) -> ProjectSettings:
        return self._read().project_settings.get(project_key) or ProjectSettings()

    async def save_project_settings(self, project_key: str, project_settings: ProjectSettings) -> None:
        with self._lock:
            app_settings = self._read()
            app_settings.project_settings[project_key] = project_settings
            self._write(app_settings)

    def _read(self) -> AppSettings:
        if not self.settings_path.exists():
            return AppSettings()
        try:
            return AppSettings.model_validate(json.loads(self.settings_path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Error reading settings, using defaults", path=str(self.settings_path), error=str(e))
            return AppSettings()

    def _write(self, app_settings: AppSettings) -> None:
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        self.settings_path.write_text(
            json.dumps(app_settings.to_document(), indent=2, ensure_ascii=False), encoding="utf-8"
        )

    def _project_folders(self) -> List[str]:
        self.drafts_root.mkdir(parents=True, exist_ok=True)
        return [entry.name for entry in self.drafts_root.iterdir() if entry.is_dir()]

    def _sync(self) -> bool:
        app_settings = self._read()
        folders = set(self._project_folders())
        modified = False

        valid_projects = [p for p in app_settings.projects if p in folders]
        if len(valid_projects) != len(app_settings.projects):
            removed = [p for p in app_settings.projects if p not in folders]
            logger.info("Removing stale projects from settings", removed_projects=removed)
            app_settings.projects = valid_projects
            modified = True

        orphaned = [key for key in app_settings.project_settings if key not in app_settings.projects]
        if orphaned:
            for project_key in orphaned:
                del app_settings.project_settings[project_key]
            modified = True

        valid_hidden = [p for p in app_settings.hidden_projects if p in folders]
        if len(valid_hidden) != len(app_settings.hidden_projects):
            app_settings.hidden_projects = valid_hidden
            modified = True

        active = app_settings.active_project
        if active and (active not in valid_projects or active in app_settings.hidden_projects):
            app_settings.active_project = _first_visible(app_settings)
            modified = True

        if modified:
            self._write(app_settings)
        return modified

"""Path derivation for draft files.

A draft's location is ``<projectKey>/<sanitized area>/<slug>-<id[:8]>.json``
relative to the drafts root. These rules are shared with existing on-disk
stores, so they must not change.
"""

import re
from pathlib import Path
from typing import NamedTuple

DEFAULT_AREA = "General"
DEFAULT_TITLE = "untitled"
DEFAULT_PROJECT = "Default"
SHORT_ID_LENGTH = 8

_FORBIDDEN_FOLDER_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_NON_SLUG_CHARS = re.compile(r"[^A-Za-z0-9_\s-]")
_HYPHEN_RUNS = re.compile(r"-+")
_PATH_SEPARATORS = re.compile(r"[/\\\x00]")


class SummaryParts(NamedTuple):
    area: str
    title: str


def slugify(value: str) -> str:
    """Lowercase, hyphen-separated file name stem for a title."""
    if not value:
        return DEFAULT_TITLE
    slug = value.lower().strip()
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    slug = slug.strip("-")
    return slug or DEFAULT_TITLE


def sanitize_folder_name(value: str) -> str:
    """Strip characters that are unsafe in folder names; spaces become underscores."""
    if not value:
        return DEFAULT_AREA
    name = value.strip()
    name = _FORBIDDEN_FOLDER_CHARS.sub("", name)
    name = _WHITESPACE.sub("_", name)
    return name or DEFAULT_AREA


def parse_summary(summary: str) -> SummaryParts:
    """Split ``area | layer | title`` into the area and title used for storage."""
    if not summary:
        return SummaryParts(DEFAULT_AREA, DEFAULT_TITLE)

    parts = [part.strip() for part in summary.split("|")]
    if len(parts) >= 3:
        return SummaryParts(parts[0], parts[2])
    if len(parts) == 2:
        return SummaryParts(parts[0], parts[1])
    return SummaryParts(DEFAULT_AREA, summary)


def draft_filename(title: str, draft_id: str) -> str:
    slug = slugify(title)
    short_id = draft_id[:SHORT_ID_LENGTH] if draft_id else ""
    return f"{slug}-{short_id}.json" if short_id else f"{slug}.json"


def draft_path(root: Path, project_key: str, area: str, title: str, draft_id: str) -> Path:
    return root / project_key / sanitize_folder_name(area) / draft_filename(title, draft_id)


def is_valid_project_key(project_key: str) -> bool:
    """A project key names exactly one directory directly under the drafts root."""
    if not project_key or project_key in (".", ".."):
        return False
    return not _PATH_SEPARATORS.search(project_key)

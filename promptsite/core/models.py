"""Data models for generated projects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

LANGUAGES: frozenset[str] = frozenset(
    {"html", "css", "javascript", "typescript", "java", "python", "json", "other"}
)

SAVED_LABEL = "Saved Version"
BACKUP_LABEL = "Auto-backup before Revert"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileVersion:
    """A superseded state of a file."""

    content: str
    label: str = SAVED_LABEL
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "content": self.content,
            "label": self.label,
        }


@dataclass(frozen=True)
class ProjectFile:
    filename: str
    language: str  # html, css, javascript, typescript, java, python, json, other
    content: str
    history: Tuple[FileVersion, ...] = ()

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "language": self.language,
            "content": self.content,
            "history": [version.to_dict() for version in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectFile":
        # Freshly generated files never carry history.
        return cls(
            filename=str(data.get("filename", "")).strip(),
            language=normalize_language(data.get("language")),
            content=str(data.get("content") or ""),
        )


def normalize_language(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        return "other"
    return value.strip().lower()


def files_from_payload(payload: object) -> List[ProjectFile]:
    """Parse the ``{"files": [...]}`` object returned by the generator.

    Entries that are not objects or have no filename are dropped, and a
    filename seen earlier in the payload wins over later duplicates.
    """
    entries: Iterable[object] = []
    if isinstance(payload, dict):
        raw = payload.get("files") or []
        if isinstance(raw, list):
            entries = raw
    files: List[ProjectFile] = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        project_file = ProjectFile.from_dict(entry)
        if not project_file.filename or project_file.filename in seen:
            continue
        seen.add(project_file.filename)
        files.append(project_file)
    return files

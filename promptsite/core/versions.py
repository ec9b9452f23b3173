"""In-memory store of project files and their revision history."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional

from .models import BACKUP_LABEL, SAVED_LABEL, FileVersion, ProjectFile

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"


class VersionError(ValueError):
    """Base class for history contract violations."""


class VersionNotFoundError(VersionError):
    def __init__(self, filename: str) -> None:
        super().__init__(f"Version is not part of the history of {filename!r}")
        self.filename = filename


class DuplicateFilenameError(ValueError):
    def __init__(self, filename: str) -> None:
        super().__init__(f"Duplicate filename in project: {filename!r}")
        self.filename = filename


class UnknownFileError(KeyError):
    def __init__(self, filename: str) -> None:
        super().__init__(filename)
        self.filename = filename

    def __str__(self) -> str:
        return f"No such file in project: {self.filename!r}"


class VersionStore:
    """Owns the files of one generated project.

    Files are immutable values; every mutation swaps in a new ``ProjectFile``
    under the same filename, so callers should look files up again after
    ``save`` or ``restore`` instead of holding on to old values.
    """

    def __init__(self, files: Optional[Iterable[ProjectFile]] = None) -> None:
        self._files: Dict[str, ProjectFile] = {}
        if files is not None:
            self.load(files)

    # --------------------------------------------------------------- Access --
    @property
    def files(self) -> List[ProjectFile]:
        return list(self._files.values())

    @property
    def filenames(self) -> List[str]:
        return list(self._files)

    def get(self, filename: str) -> Optional[ProjectFile]:
        return self._files.get(filename)

    def find_index(self) -> Optional[ProjectFile]:
        return self._files.get(INDEX_FILENAME)

    def __contains__(self, filename: object) -> bool:
        return filename in self._files

    def __iter__(self) -> Iterator[ProjectFile]:
        return iter(list(self._files.values()))

    def __len__(self) -> int:
        return len(self._files)

    # ------------------------------------------------------------ Lifecycle --
    def load(self, files: Iterable[ProjectFile]) -> None:
        loaded: Dict[str, ProjectFile] = {}
        for project_file in files:
            if project_file.filename in loaded:
                raise DuplicateFilenameError(project_file.filename)
            loaded[project_file.filename] = replace(project_file, history=())
        self._files = loaded
        logger.debug("Loaded %d generated files", len(loaded))

    def clear(self) -> None:
        self._files = {}

    # -------------------------------------------------------------- History --
    def save(self, filename: str, new_content: str) -> ProjectFile:
        current = self._require(filename)
        if new_content == current.content:
            return current
        entry = FileVersion(content=current.content, label=SAVED_LABEL)
        updated = replace(current, content=new_content, history=(entry, *current.history))
        self._files[filename] = updated
        logger.debug("Saved %s (%d versions)", filename, len(updated.history))
        return updated

    def restore(self, filename: str, version: FileVersion) -> ProjectFile:
        current = self._require(filename)
        if not any(entry is version for entry in current.history):
            raise VersionNotFoundError(filename)
        backup = FileVersion(content=current.content, label=BACKUP_LABEL)
        updated = replace(current, content=version.content, history=(backup, *current.history))
        self._files[filename] = updated
        logger.debug("Restored %s to version from %s", filename, version.timestamp.isoformat())
        return updated

    def _require(self, filename: str) -> ProjectFile:
        current = self._files.get(filename)
        if current is None:
            raise UnknownFileError(filename)
        return current

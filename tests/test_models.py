from __future__ import annotations

import dataclasses
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from promptsite.core.models import FileVersion, ProjectFile, files_from_payload, normalize_language


def test_from_dict_normalizes_language_and_drops_history() -> None:
    project_file = ProjectFile.from_dict(
        {"filename": " index.html ", "language": "HTML", "content": "<p></p>", "history": [{"content": "x"}]}
    )
    assert project_file.filename == "index.html"
    assert project_file.language == "html"
    assert project_file.history == ()


def test_normalize_language_defaults_to_other() -> None:
    assert normalize_language(None) == "other"
    assert normalize_language("  ") == "other"
    assert normalize_language("Python") == "python"


def test_files_from_payload_skips_bad_entries_and_duplicates() -> None:
    payload = {
        "files": [
            {"filename": "index.html", "language": "html", "content": "first"},
            "not a file",
            {"language": "css", "content": "no name"},
            {"filename": "index.html", "language": "html", "content": "second"},
            {"filename": "script.js", "language": "javascript", "content": None},
        ]
    }
    files = files_from_payload(payload)
    assert [f.filename for f in files] == ["index.html", "script.js"]
    assert files[0].content == "first"
    assert files[1].content == ""


def test_files_from_payload_tolerates_unexpected_shapes() -> None:
    assert files_from_payload(None) == []
    assert files_from_payload({"files": "nope"}) == []
    assert files_from_payload([]) == []


def test_project_files_are_immutable() -> None:
    project_file = ProjectFile(filename="a.py", language="python", content="pass")
    with pytest.raises(dataclasses.FrozenInstanceError):
        project_file.content = "changed"  # type: ignore[misc]


def test_to_dict_includes_history() -> None:
    version = FileVersion(content="old")
    data = ProjectFile(filename="a.py", language="python", content="new", history=(version,)).to_dict()
    assert data["history"][0]["content"] == "old"
    assert data["history"][0]["label"] == "Saved Version"

"""Editing session state and the unsaved-changes navigation guard."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Literal, Optional, Union

from .generator import inject_custom_image
from .highlighting import cached_highlight
from .models import FileVersion, ProjectFile
from .versions import VersionStore

logger = logging.getLogger(__name__)

Tab = Literal["preview", "code"]


@dataclass(frozen=True)
class SelectFile:
    filename: str


@dataclass(frozen=True)
class SwitchTab:
    tab: Tab


@dataclass(frozen=True)
class CancelEdit:
    pass


@dataclass(frozen=True)
class Generate:
    prompt: str


Intent = Union[SelectFile, SwitchTab, CancelEdit, Generate]


class Resolution(str, Enum):
    SAVE = "save"
    DISCARD = "discard"
    CANCEL = "cancel"


class EditorSession:
    """Selection, edit buffer and pending navigation for one window.

    Navigation goes through ``guard``: it runs an intent right away unless
    the edit buffer holds unsaved text, in which case the intent is parked
    until the caller answers with ``resolve``.
    """

    def __init__(
        self,
        store: Optional[VersionStore] = None,
        on_generate: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store if store is not None else VersionStore()
        self.on_generate = on_generate
        self.active_tab: Tab = "preview"
        self.history_visible = False
        self._selected: Optional[str] = None
        self._editing = False
        self._buffer = ""
        self._pending: Optional[Intent] = None

    # ----------------------------------------------------------------- State --
    @property
    def selected(self) -> Optional[ProjectFile]:
        if self._selected is None:
            return None
        return self.store.get(self._selected)

    @property
    def selected_filename(self) -> Optional[str]:
        return self._selected

    @property
    def is_editing(self) -> bool:
        return self._editing

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def pending(self) -> Optional[Intent]:
        return self._pending

    def has_unsaved_changes(self) -> bool:
        if not self._editing:
            return False
        current = self.selected
        return current is not None and self._buffer != current.content

    def working_content(self) -> str:
        current = self.selected
        if current is None:
            return ""
        return self._buffer if self._editing else current.content

    def preview_html(self) -> str:
        index = self.store.find_index()
        return index.content if index else ""

    def highlighted(self) -> str:
        current = self.selected
        if current is None:
            return ""
        return cached_highlight(current.content, current.language)

    # --------------------------------------------------------------- Editing --
    def enter_edit(self) -> bool:
        current = self.selected
        if current is None:
            return False
        self._buffer = current.content
        self._editing = True
        return True

    def set_buffer(self, text: str) -> None:
        self._buffer = text

    def save_changes(self) -> Optional[ProjectFile]:
        if self._selected is None or not self._editing:
            return self.selected
        return self.store.save(self._selected, self._buffer)

    def toggle_edit_mode(self) -> None:
        if self._editing:
            self.save_changes()
            self._editing = False
        else:
            self.enter_edit()

    def toggle_history(self) -> None:
        self.history_visible = not self.history_visible

    def restore(self, version: FileVersion) -> ProjectFile:
        if self._selected is None:
            raise LookupError("No file is selected")
        updated = self.store.restore(self._selected, version)
        if self._editing:
            self._buffer = updated.content
        self.history_visible = False
        return updated

    # ------------------------------------------------------------ Navigation --
    def try_select_file(self, filename: str) -> bool:
        if filename == self._selected:
            return False
        return self.guard(SelectFile(filename))

    def try_switch_tab(self, tab: Tab) -> bool:
        if tab == self.active_tab:
            return False
        return self.guard(SwitchTab(tab))

    def try_cancel_edit(self) -> bool:
        return self.guard(CancelEdit())

    def try_generate(self, prompt: str) -> bool:
        if not prompt.strip():
            return False
        return self.guard(Generate(prompt))

    def guard(self, intent: Intent) -> bool:
        """Run ``intent`` now, or park it and return False to ask the user."""
        if not self.has_unsaved_changes():
            self._pending = None
            self._apply(intent)
            return True
        if self._pending is not None:
            logger.debug("Replacing pending %r with %r", self._pending, intent)
        self._pending = intent
        return False

    def resolve(self, resolution: Resolution) -> bool:
        """Answer the confirmation raised by ``guard``.

        Returns True when the parked intent ran. Resolving with nothing
        parked does nothing.
        """
        intent = self._pending
        if intent is None:
            return False
        self._pending = None
        if resolution is Resolution.CANCEL:
            return False
        if resolution is Resolution.SAVE:
            self.save_changes()
        self._editing = False
        self._apply(intent)
        return True

    def _apply(self, intent: Intent) -> None:
        if isinstance(intent, SelectFile):
            self.select_file(intent.filename)
        elif isinstance(intent, SwitchTab):
            self.active_tab = intent.tab
        elif isinstance(intent, CancelEdit):
            self._editing = False
            current = self.selected
            if current is not None:
                self._buffer = current.content
        elif isinstance(intent, Generate):
            self.begin_generation()
            if self.on_generate is not None:
                self.on_generate(intent.prompt)
        else:
            raise TypeError(f"Unsupported intent: {intent!r}")

    def select_file(self, filename: str) -> None:
        if filename not in self.store:
            logger.warning("Ignoring selection of unknown file %s", filename)
            return
        self._selected = filename
        self.active_tab = "code"
        self._editing = False
        self.history_visible = False

    # ------------------------------------------------------------ Generation --
    def begin_generation(self) -> None:
        self.store.clear()
        self._selected = None
        self._editing = False
        self._buffer = ""
        self._pending = None
        self.history_visible = False

    def finish_generation(
        self, files: Iterable[ProjectFile], image_data_url: Optional[str] = None
    ) -> None:
        files = list(files)
        if image_data_url:
            files = inject_custom_image(files, image_data_url)
        self.store.load(files)
        index = self.store.find_index()
        if index is not None:
            self._selected = index.filename
        elif len(self.store):
            self._selected = self.store.filenames[0]
        else:
            self._selected = None
        self.active_tab = "preview"

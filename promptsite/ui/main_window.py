"""Main application window for PromptSite."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from PyQt6 import QtCore, QtGui, QtWidgets
from PyQt6.QtCore import QObject, QThread, pyqtSignal
from PyQt6.QtWebEngineWidgets import QWebEngineView

from ..core import generator, render
from ..core.models import ProjectFile
from ..core.session import EditorSession, Resolution, Tab
from ..core.settings import SettingsManager

logger = logging.getLogger(__name__)

APP_TITLE = "PromptSite"

EXAMPLES = [
    "Modern e-commerce store for sustainable fashion with a product grid, filters, and a shopping cart preview.",
    "Clean, minimalist travel blog featuring a masonry grid layout for articles and a newsletter signup.",
    "Professional corporate landing page for a legal consulting firm with a 'Meet the Team' section and trust badges.",
    "Futuristic SaaS dashboard for analytics with a dark mode sidebar, data charts, and activity feed.",
]


class _GenerateWorker(QObject):
    finished = pyqtSignal(list)
    errored = pyqtSignal(str)

    def __init__(self, manager: SettingsManager, prompt: str, has_image: bool) -> None:
        super().__init__()
        self.manager = manager
        self.prompt = prompt
        self.has_image = has_image

    def run(self) -> None:
        try:
            files = generator.generate_project(self.prompt, self.manager.settings(), self.has_image)
        except generator.GenerationError as exc:
            logger.error("Generation failed: %s", exc)
            self.errored.emit(str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while generating")
            self.errored.emit(str(exc))
            return
        self.finished.emit(files)


class _EnhanceWorker(QObject):
    finished = pyqtSignal(str)
    errored = pyqtSignal(str)

    def __init__(self, manager: SettingsManager, prompt: str) -> None:
        super().__init__()
        self.manager = manager
        self.prompt = prompt

    def run(self) -> None:
        try:
            text = generator.enhance_prompt(self.prompt, self.manager.settings())
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while enhancing the prompt")
            self.errored.emit(str(exc))
            return
        self.finished.emit(text)


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, settings: Optional[SettingsManager] = None) -> None:
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.resize(1320, 840)

        self.settings_manager = settings if settings is not None else SettingsManager()
        self.session = EditorSession(on_generate=self._start_generation)

        self._image_data_url: Optional[str] = None
        self._loading = False
        self._threads: List[QThread] = []
        self._workers: List[QObject] = []
        self._shown_code: Optional[tuple[str, str, str]] = None
        self._shown_preview: Optional[str] = None
        self._preview_tmp = tempfile.mkdtemp(prefix="promptsite_preview_")

        self._build_ui()
        self._build_menu()
        self._bind_events()
        self._sync_ui()

    # ------------------------------------------------------------------ UI --
    def _build_ui(self) -> None:
        splitter = QtWidgets.QSplitter(self)
        splitter.setOrientation(QtCore.Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        # Prompt + files panel
        left_panel = QtWidgets.QWidget(self)
        left_layout = QtWidgets.QVBoxLayout(left_panel)
        left_layout.setContentsMargins(6, 6, 6, 6)
        left_layout.setSpacing(6)

        self.prompt_edit = QtWidgets.QPlainTextEdit(left_panel)
        self.prompt_edit.setPlaceholderText("Describe the website you want to build…")
        self.examples_combo = QtWidgets.QComboBox(left_panel)
        self.examples_combo.addItem("Try an example…")
        for example in EXAMPLES:
            self.examples_combo.addItem(example[:60] + "…", example)

        image_row = QtWidgets.QHBoxLayout()
        self.btn_attach = QtWidgets.QPushButton("Attach Image…", left_panel)
        self.btn_remove_image = QtWidgets.QPushButton("Remove", left_panel)
        self.image_label = QtWidgets.QLabel("No image", left_panel)
        image_row.addWidget(self.btn_attach)
        image_row.addWidget(self.btn_remove_image)
        image_row.addWidget(self.image_label, 1)

        btn_row = QtWidgets.QHBoxLayout()
        self.btn_enhance = QtWidgets.QPushButton("Enhance Prompt", left_panel)
        self.btn_generate = QtWidgets.QPushButton("Generate", left_panel)
        btn_row.addWidget(self.btn_enhance)
        btn_row.addWidget(self.btn_generate)

        self.files_list = QtWidgets.QListWidget(left_panel)
        self.files_list.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.SingleSelection)

        left_layout.addWidget(QtWidgets.QLabel("Prompt", left_panel))
        left_layout.addWidget(self.prompt_edit, 1)
        left_layout.addWidget(self.examples_combo)
        left_layout.addLayout(image_row)
        left_layout.addLayout(btn_row)
        left_layout.addWidget(QtWidgets.QLabel("Files", left_panel))
        left_layout.addWidget(self.files_list, 1)

        # Preview / code area
        right_panel = QtWidgets.QWidget(self)
        right_layout = QtWidgets.QVBoxLayout(right_panel)
        right_layout.setContentsMargins(6, 6, 6, 6)
        right_layout.setSpacing(6)

        tab_row = QtWidgets.QHBoxLayout()
        self.btn_tab_preview = QtWidgets.QPushButton("Preview", right_panel)
        self.btn_tab_code = QtWidgets.QPushButton("Code", right_panel)
        for button in (self.btn_tab_preview, self.btn_tab_code):
            button.setCheckable(True)
            tab_row.addWidget(button)
        tab_row.addStretch(1)
        right_layout.addLayout(tab_row)

        self.stack = QtWidgets.QStackedWidget(right_panel)
        self.preview = QWebEngineView(self.stack)
        self.stack.addWidget(self.preview)

        code_page = QtWidgets.QWidget(self.stack)
        code_layout = QtWidgets.QVBoxLayout(code_page)
        code_layout.setContentsMargins(0, 0, 0, 0)

        toolbar = QtWidgets.QHBoxLayout()
        self.file_label = QtWidgets.QLabel("", code_page)
        self.btn_edit = QtWidgets.QPushButton("Edit", code_page)
        self.btn_cancel_edit = QtWidgets.QPushButton("Cancel", code_page)
        self.btn_history = QtWidgets.QPushButton("History", code_page)
        self.btn_history.setCheckable(True)
        self.btn_download = QtWidgets.QPushButton("Download", code_page)
        toolbar.addWidget(self.file_label, 1)
        toolbar.addWidget(self.btn_edit)
        toolbar.addWidget(self.btn_cancel_edit)
        toolbar.addWidget(self.btn_history)
        toolbar.addWidget(self.btn_download)
        code_layout.addLayout(toolbar)

        code_splitter = QtWidgets.QSplitter(QtCore.Qt.Orientation.Horizontal, code_page)
        self.code_stack = QtWidgets.QStackedWidget(code_splitter)
        self.code_view = QWebEngineView(self.code_stack)
        self.code_editor = QtWidgets.QPlainTextEdit(self.code_stack)
        self.code_editor.setLineWrapMode(QtWidgets.QPlainTextEdit.LineWrapMode.NoWrap)
        font = QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.SystemFont.FixedFont)
        self.code_editor.setFont(font)
        self.code_stack.addWidget(self.code_view)
        self.code_stack.addWidget(self.code_editor)

        self.history_panel = QtWidgets.QWidget(code_splitter)
        history_layout = QtWidgets.QVBoxLayout(self.history_panel)
        history_layout.setContentsMargins(0, 0, 0, 0)
        self.history_list = QtWidgets.QListWidget(self.history_panel)
        self.btn_restore = QtWidgets.QPushButton("Restore Selected Version", self.history_panel)
        history_layout.addWidget(QtWidgets.QLabel("Version history", self.history_panel))
        history_layout.addWidget(self.history_list, 1)
        history_layout.addWidget(self.btn_restore)

        code_splitter.addWidget(self.code_stack)
        code_splitter.addWidget(self.history_panel)
        code_splitter.setSizes([760, 260])
        code_layout.addWidget(code_splitter, 1)

        self.stack.addWidget(code_page)
        right_layout.addWidget(self.stack, 1)

        splitter.addWidget(left_panel)
        splitter.addWidget(right_panel)
        splitter.setSizes([340, 980])

        self.status = self.statusBar()

    def _build_menu(self) -> None:
        bar = self.menuBar()
        if bar is None:
            bar = QtWidgets.QMenuBar(self)
            self.setMenuBar(bar)

        file_menu = bar.addMenu("&File")
        self.act_download = QtGui.QAction("Download File…", self)
        self.act_quit = QtGui.QAction("Quit", self)
        if file_menu is not None:
            file_menu.addAction(self.act_download)
            file_menu.addSeparator()
            file_menu.addAction(self.act_quit)

        help_menu = bar.addMenu("&Help")
        self.act_about = QtGui.QAction("About", self)
        if help_menu is not None:
            help_menu.addAction(self.act_about)

    def _bind_events(self) -> None:
        self.examples_combo.activated.connect(self._on_example_chosen)
        self.btn_attach.clicked.connect(self.attach_image)
        self.btn_remove_image.clicked.connect(self.remove_image)
        self.btn_enhance.clicked.connect(self.enhance_prompt)
        self.btn_generate.clicked.connect(self.generate)
        self.files_list.currentRowChanged.connect(self._on_file_selection_changed)

        self.btn_tab_preview.clicked.connect(lambda: self._switch_tab("preview"))
        self.btn_tab_code.clicked.connect(lambda: self._switch_tab("code"))
        self.btn_edit.clicked.connect(self.toggle_edit_mode)
        self.btn_cancel_edit.clicked.connect(self.cancel_edit)
        self.btn_history.clicked.connect(self.toggle_history)
        self.btn_restore.clicked.connect(self.restore_selected_version)
        self.btn_download.clicked.connect(self.download_file)
        self.code_editor.textChanged.connect(self._on_editor_changed)

        self.act_download.triggered.connect(self.download_file)
        self.act_quit.triggered.connect(self.close)
        self.act_about.triggered.connect(self.show_about)

    # ------------------------------------------------------------ Guarding --
    def _after_guard(self, ran: bool) -> None:
        if not ran and self.session.pending is not None:
            self.session.resolve(self._ask_unsaved())
        self._sync_ui()

    def _ask_unsaved(self) -> Resolution:
        current = self.session.selected
        name = current.filename if current else "this file"
        box = QtWidgets.QMessageBox(self)
        box.setIcon(QtWidgets.QMessageBox.Icon.Warning)
        box.setWindowTitle("Unsaved changes")
        box.setText(f"Save changes to “{name}” before continuing?")
        box.setInformativeText("If you don’t save, your edits will be lost.")
        save_btn = box.addButton("Save", QtWidgets.QMessageBox.ButtonRole.AcceptRole)
        discard_btn = box.addButton("Don’t Save", QtWidgets.QMessageBox.ButtonRole.DestructiveRole)
        box.addButton("Cancel", QtWidgets.QMessageBox.ButtonRole.RejectRole)
        box.setDefaultButton(save_btn)
        box.exec()

        clicked = box.clickedButton()
        if clicked is save_btn:
            return Resolution.SAVE
        if clicked is discard_btn:
            return Resolution.DISCARD
        return Resolution.CANCEL

    # ---------------------------------------------------------- Generation --
    def _on_example_chosen(self, index: int) -> None:
        example = self.examples_combo.itemData(index)
        if example:
            self.prompt_edit.setPlainText(example)
        self.examples_combo.setCurrentIndex(0)

    def attach_image(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Attach Image", "", "Images (*.png *.jpg *.jpeg *.gif *.webp *.svg)"
        )
        if not path:
            return
        try:
            self._image_data_url = generator.read_image_data_url(path)
        except OSError as exc:
            QtWidgets.QMessageBox.warning(self, "Attach Image", f"Failed to read {path}: {exc}")
            return
        self.image_label.setText(Path(path).name)

    def remove_image(self) -> None:
        self._image_data_url = None
        self.image_label.setText("No image")

    def enhance_prompt(self) -> None:
        self.btn_enhance.setEnabled(False)
        self.btn_enhance.setText("Enhancing…")
        worker = _EnhanceWorker(self.settings_manager, self.prompt_edit.toPlainText())

        def reset_button() -> None:
            self.btn_enhance.setEnabled(True)
            self.btn_enhance.setText("Enhance Prompt")

        def handle_finish(text: str) -> None:
            self.prompt_edit.setPlainText(text)
            reset_button()

        def handle_error(message: str) -> None:
            reset_button()
            if self.status is not None:
                self.status.showMessage(f"Could not enhance prompt: {message}", 4000)

        worker.finished.connect(handle_finish)
        worker.errored.connect(handle_error)
        self._run_in_thread(worker)

    def generate(self) -> None:
        if self._loading:
            return
        self._after_guard(self.session.try_generate(self.prompt_edit.toPlainText()))

    def _start_generation(self, prompt: str) -> None:
        self._loading = True
        self.btn_generate.setEnabled(False)
        self.btn_generate.setText("Generating…")
        if self.status is not None:
            self.status.showMessage("Generating project…")
        image_data_url = self._image_data_url
        worker = _GenerateWorker(self.settings_manager, prompt, image_data_url is not None)

        def handle_finish(files: List[ProjectFile]) -> None:
            self.session.finish_generation(files, image_data_url)
            self._finish_loading(f"Generated {len(files)} files")

        def handle_error(message: str) -> None:
            self._finish_loading("Generation failed")
            QtWidgets.QMessageBox.critical(
                self,
                "Generation failed",
                f"Something went wrong while generating your project. Please try again.\n\n{message}",
            )

        worker.finished.connect(handle_finish)
        worker.errored.connect(handle_error)
        self._run_in_thread(worker)

    def _finish_loading(self, message: str) -> None:
        self._loading = False
        self.btn_generate.setEnabled(True)
        self.btn_generate.setText("Generate")
        if self.status is not None:
            self.status.showMessage(message, 4000)
        self._sync_ui()

    def _run_in_thread(self, worker: QObject) -> None:
        thread = QThread(self)
        worker.moveToThread(thread)

        def cleanup() -> None:
            if thread in self._threads:
                self._threads.remove(thread)
            if worker in self._workers:
                self._workers.remove(worker)
            worker.deleteLater()
            thread.deleteLater()

        worker.finished.connect(thread.quit)
        worker.errored.connect(thread.quit)
        thread.finished.connect(cleanup)
        thread.started.connect(worker.run)
        self._threads.append(thread)
        self._workers.append(worker)
        thread.start()

    # ------------------------------------------------------------- Editing --
    def _on_file_selection_changed(self, row: int) -> None:
        filenames = self.session.store.filenames
        if 0 <= row < len(filenames):
            self._after_guard(self.session.try_select_file(filenames[row]))

    def _switch_tab(self, tab: Tab) -> None:
        self._after_guard(self.session.try_switch_tab(tab))

    def cancel_edit(self) -> None:
        self._after_guard(self.session.try_cancel_edit())

    def toggle_edit_mode(self) -> None:
        self.session.toggle_edit_mode()
        if self.session.is_editing:
            self.code_editor.blockSignals(True)
            self.code_editor.setPlainText(self.session.buffer)
            self.code_editor.blockSignals(False)
        self._sync_ui()

    def _on_editor_changed(self) -> None:
        if self.session.is_editing:
            self.session.set_buffer(self.code_editor.toPlainText())
            self._sync_buttons()

    def toggle_history(self) -> None:
        self.session.toggle_history()
        self._sync_ui()

    def restore_selected_version(self) -> None:
        current = self.session.selected
        row = self.history_list.currentRow()
        if current is None or not (0 <= row < len(current.history)):
            return
        self.session.restore(current.history[row])
        if self.session.is_editing:
            self.code_editor.blockSignals(True)
            self.code_editor.setPlainText(self.session.buffer)
            self.code_editor.blockSignals(False)
        if self.status is not None:
            self.status.showMessage(f"Restored {current.filename}", 2500)
        self._sync_ui()

    def download_file(self) -> None:
        current = self.session.selected
        if current is None:
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(self, "Download File", current.filename)
        if not path:
            return
        try:
            Path(path).write_text(self.session.working_content(), encoding="utf-8")
        except OSError as exc:
            QtWidgets.QMessageBox.warning(self, "Download", f"Failed to write {path}: {exc}")
            return
        if self.status is not None:
            self.status.showMessage(f"Saved {Path(path).name}", 2500)

    # ------------------------------------------------------------- Refresh --
    def _show_document(self, view: QWebEngineView, name: str, html: str) -> None:
        try:
            path = render.write_document(self._preview_tmp, name, html)
        except OSError as exc:
            logger.warning("Could not write %s, showing it inline: %s", name, exc)
            view.setHtml(html)
            return
        view.load(QtCore.QUrl.fromLocalFile(str(path)))

    def _sync_ui(self) -> None:
        session = self.session
        filenames = session.store.filenames

        self.files_list.blockSignals(True)
        self.files_list.clear()
        for project_file in session.store:
            self.files_list.addItem(f"{project_file.filename}  ({project_file.language})")
        if session.selected_filename in filenames:
            self.files_list.setCurrentRow(filenames.index(session.selected_filename))
        self.files_list.blockSignals(False)

        on_code = session.active_tab == "code"
        self.btn_tab_preview.setChecked(not on_code)
        self.btn_tab_code.setChecked(on_code)
        self.stack.setCurrentIndex(1 if on_code else 0)

        preview = render.render_preview(session.preview_html(), loading=self._loading)
        if preview != self._shown_preview:
            self._shown_preview = preview
            self._show_document(self.preview, "preview.html", preview)

        current = session.selected
        self.file_label.setText(current.filename if current else "No file selected")
        self.code_stack.setCurrentIndex(1 if session.is_editing else 0)
        if current is not None and not session.is_editing:
            key = (current.filename, current.language, current.content)
            if key != self._shown_code:
                self._shown_code = key
                self._show_document(
                    self.code_view,
                    "code.html",
                    render.render_code_view(current.filename, current.language, session.highlighted()),
                )

        self.history_panel.setVisible(session.history_visible)
        self.history_list.clear()
        if current is not None:
            for version in current.history:
                stamp = version.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
                self.history_list.addItem(f"{version.label} — {stamp}")
        self._sync_buttons()
        self.update_window_title()

    def _sync_buttons(self) -> None:
        session = self.session
        has_file = session.selected is not None
        self.btn_edit.setText("Done" if session.is_editing else "Edit")
        self.btn_edit.setEnabled(has_file)
        self.btn_cancel_edit.setEnabled(session.is_editing)
        self.btn_history.setChecked(session.history_visible)
        self.btn_history.setEnabled(has_file)
        self.btn_download.setEnabled(has_file)
        self.act_download.setEnabled(has_file)
        self.update_window_title()

    # ---------------------------------------------------------------- Misc --
    def show_about(self) -> None:
        QtWidgets.QMessageBox.information(
            self,
            "About",
            f"{APP_TITLE}\n\nDescribe a website, generate it, then review and edit every file.",
        )

    def update_window_title(self) -> None:
        current = self.session.selected
        name = current.filename if current else "Untitled"
        dirty = " •" if self.session.has_unsaved_changes() else ""
        self.setWindowTitle(f"{APP_TITLE} — {name}{dirty}")

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # noqa: N802 (Qt override)
        if self.session.has_unsaved_changes():
            choice = self._ask_unsaved()
            if choice is Resolution.CANCEL:
                event.ignore()
                return
            if choice is Resolution.SAVE:
                self.session.save_changes()
        self._stop_workers()
        shutil.rmtree(self._preview_tmp, ignore_errors=True)
        super().closeEvent(event)

    def _stop_workers(self) -> None:
        # Results arriving after close must not touch the torn-down widgets.
        for worker in list(self._workers):
            for signal in (worker.finished, worker.errored):
                try:
                    signal.disconnect()
                except TypeError:
                    pass
        # A request in flight cannot be interrupted, so wait out its timeout.
        timeout_ms = int((self.settings_manager.settings().request_timeout + 5) * 1000)
        for thread in list(self._threads):
            thread.requestInterruption()
            thread.quit()
            if not thread.wait(timeout_ms):
                logger.warning("Worker thread still running at shutdown")

import logging
import sys

from PyQt6 import QtWidgets

from .core.settings import SettingsManager
from .ui.main_window import MainWindow

if sys.platform == "win32":
    try:
        import ctypes
        ctypes.windll.shell32.SetCurrentProcessExplicitAppUserModelID(
            "PromptSite.WebApp")
    except (AttributeError, OSError):
        pass


def main() -> int:
    settings = SettingsManager()
    logging.basicConfig(
        level=getattr(logging, settings.settings().log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName("PromptSite")
    win = MainWindow(settings)
    win.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())

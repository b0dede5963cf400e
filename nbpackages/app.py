"""Command line launcher for the Manage Packages dialog."""

import sys
import argparse

from . import __version__
from .config import load_settings
from .system import configure_logging
from .utils import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nbpackages",
        description="View and manage the Python packages of a notebook runtime."
    )
    parser.add_argument("--python", dest="python_path", metavar="PATH",
                        help="Python interpreter to manage (default: $NBPACKAGES_PYTHON or the detected one)")
    parser.add_argument("--log-level", dest="log_level", metavar="LEVEL",
                        help="logging level (default: $NBPACKAGES_LOG_LEVEL or INFO)")
    parser.add_argument("--pypi-url", dest="pypi_url", metavar="URL",
                        help="PyPI JSON API base URL")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(vars(args))
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    configure_logging(settings.log_level)

    # Qt is imported late so --help works without a display.
    from PySide6.QtWidgets import QApplication
    from .core import NotebookInstallation
    from .ui.dialogs import ManagePackagesDialog
    from .ui.theme import QtTheme

    app = QApplication.instance() or QApplication(sys.argv[:1])

    try:
        installation = NotebookInstallation(settings)
    except ValueError as e:
        logger.error(f"Fatal error: {e}")
        return 2

    QtTheme().apply_to_app(app)
    dialog = ManagePackagesDialog(installation)
    dialog.finished.connect(app.quit)
    dialog.show_dialog()
    exit_code = app.exec()
    # pip may still be running if the dialog was closed mid-operation
    dialog.wait_for_workers(installation.settings.pip_timeout * 1000)
    return exit_code

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton,
    QTableWidget, QTableWidgetItem, QHeaderView, QAbstractItemView,
    QComboBox, QFormLayout, QMessageBox
)
from PySide6.QtCore import Slot, Signal

from ..pypi import fetch_package_info
from ..utils import logger, build_requirement, safe_string_truncate
from .widgets import GenericWorker, LoadingIndicator, MessageLevel

PACKAGE_COUNT_TEMPLATE = "{0} packages found in '{1}'"
TABLE_COLUMNS = ["Name", "Installed On", "Version"]


class WorkerTab(QWidget):
    """Tab that runs one background task at a time behind a loading indicator."""

    def __init__(self, dialog, installation, parent=None):
        super().__init__(parent)
        self.dialog = dialog
        self.installation = installation
        self._busy = False
        self._worker = None
        self._workers = []

    @property
    def is_busy(self) -> bool:
        return self._busy

    def _set_busy(self, busy: bool, text: str = None):
        self._busy = busy
        self.loading.set_loading(busy, text)
        self._update_button_state()

    def _update_button_state(self):
        pass

    def _start_worker(self, target, on_success, on_failure):
        # A QThread must outlive its run(); drop references only once finished.
        self._workers = [w for w in self._workers if not w.isFinished()]
        self._worker = GenericWorker(target)
        self._workers.append(self._worker)
        self._worker.succeeded.connect(on_success)
        self._worker.failed.connect(on_failure)
        self._worker.start()

    def wait_for_workers(self, timeout_ms: int = 5000):
        for worker in self._workers:
            worker.wait(timeout_ms)


class InstalledPackagesTab(WorkerTab):
    """Count label plus a table of whatever the installation reports."""

    packages_loaded = Signal(int)

    def __init__(self, dialog, installation, parent=None):
        super().__init__(dialog, installation, parent)
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(10)

        self.package_count_label = QLabel(
            PACKAGE_COUNT_TEMPLATE.format(0, self.installation.python_bin_path))
        self.package_count_label.setWordWrap(True)
        layout.addWidget(self.package_count_label)

        self.loading = LoadingIndicator("Loading installed packages...")
        layout.addWidget(self.loading)

        self.packages_table = QTableWidget(0, len(TABLE_COLUMNS))
        self.packages_table.setHorizontalHeaderLabels(TABLE_COLUMNS)
        self.packages_table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        self.packages_table.verticalHeader().setVisible(False)
        self.packages_table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.packages_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.packages_table.setSelectionMode(QAbstractItemView.ExtendedSelection)
        self.packages_table.setAlternatingRowColors(True)
        layout.addWidget(self.packages_table, 1)

        btn_layout = QHBoxLayout()
        btn_layout.addStretch()
        self.uninstall_btn = QPushButton("Uninstall Selected")
        self.uninstall_btn.setEnabled(False)
        self.uninstall_btn.clicked.connect(self.uninstall_selected)
        btn_layout.addWidget(self.uninstall_btn)
        layout.addLayout(btn_layout)

        self.packages_table.itemSelectionChanged.connect(self._update_button_state)

    def _update_button_state(self):
        self.uninstall_btn.setEnabled(not self._busy and bool(self.selected_package_names()))

    # --- Loading ---

    def load_packages(self, clear_message: bool = True):
        """Fetch the package list and packages path on a worker thread."""
        if self._busy:
            logger.info("Package load already in progress, ignoring request")
            return
        if clear_message:
            self.dialog.clear_message()
        self._set_busy(True, "Loading installed packages...")
        self._start_worker(self._fetch_packages, self._on_packages_loaded, self._on_load_failed)

    def _fetch_packages(self):
        packages = self.installation.get_installed_pip_packages()
        path = self.installation.get_python_packages_path()
        return packages, path

    @Slot(object)
    def _on_packages_loaded(self, result):
        self._set_busy(False)
        if not self.dialog.is_alive:
            return
        packages, path = result
        self.show_packages(packages, path)
        self.packages_loaded.emit(len(packages))

    @Slot(str)
    def _on_load_failed(self, message):
        self._set_busy(False)
        if not self.dialog.is_alive:
            return
        self.dialog.show_message(message, MessageLevel.ERROR)

    def show_packages(self, packages, path):
        self.package_count_label.setText(PACKAGE_COUNT_TEMPLATE.format(len(packages), path))

        self.packages_table.clearSelection()
        self.packages_table.setRowCount(len(packages))
        for row, pkg in enumerate(packages):
            for col, value in enumerate(pkg.as_row()):
                self.packages_table.setItem(row, col, QTableWidgetItem(value))
        self._update_button_state()

    def selected_package_names(self):
        rows = sorted({index.row() for index in self.packages_table.selectionModel().selectedRows()})
        names = []
        for row in rows:
            item = self.packages_table.item(row, 0)
            if item:
                names.append(item.text())
        return names

    # --- Uninstall ---

    def uninstall_selected(self):
        names = self.selected_package_names()
        if not names or self._busy:
            return

        listing = safe_string_truncate(", ".join(names), 300)
        answer = QMessageBox.question(
            self, "Confirm Uninstall",
            f"Are you sure you want to uninstall {listing}?",
            QMessageBox.Yes | QMessageBox.No
        )
        if answer != QMessageBox.Yes:
            return

        self.dialog.clear_message()
        self._set_busy(True, f"Uninstalling {listing}...")
        self._start_worker(
            lambda: self.installation.uninstall_pip_packages(names) or names,
            self._on_uninstalled, self._on_uninstall_failed
        )

    @Slot(object)
    def _on_uninstalled(self, names):
        self._set_busy(False)
        if not self.dialog.is_alive:
            return
        self.dialog.show_message(f"Uninstalled {', '.join(names)}", MessageLevel.INFORMATION)
        self.load_packages(clear_message=False)

    @Slot(str)
    def _on_uninstall_failed(self, message):
        self._set_busy(False)
        if self.dialog.is_alive:
            self.dialog.show_message(message, MessageLevel.ERROR)


class AddNewPackageTab(WorkerTab):
    """Look a package up on PyPI and install a chosen version."""

    package_installed = Signal(str)

    def __init__(self, dialog, installation, parent=None):
        super().__init__(dialog, installation, parent)
        self.package_info = None
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(10)

        search_layout = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Package name...")
        self.search_input.returnPressed.connect(self.do_search)
        self.search_btn = QPushButton("Search")
        self.search_btn.clicked.connect(self.do_search)
        search_layout.addWidget(self.search_input)
        search_layout.addWidget(self.search_btn)
        layout.addLayout(search_layout)

        self.loading = LoadingIndicator()
        layout.addWidget(self.loading)

        info_layout = QFormLayout()
        self.name_lbl = QLabel("")
        self.summary_lbl = QLabel("")
        self.summary_lbl.setWordWrap(True)
        self.version_combo = QComboBox()
        info_layout.addRow("Package Name:", self.name_lbl)
        info_layout.addRow("Package Summary:", self.summary_lbl)
        info_layout.addRow("Supported Package Versions:", self.version_combo)
        layout.addLayout(info_layout)
        layout.addStretch()

        btn_layout = QHBoxLayout()
        btn_layout.addStretch()
        self.install_btn = QPushButton("Install")
        self.install_btn.setEnabled(False)
        self.install_btn.clicked.connect(self.install_selected)
        btn_layout.addWidget(self.install_btn)
        layout.addLayout(btn_layout)

    def _update_button_state(self):
        self.search_btn.setEnabled(not self._busy)
        self.install_btn.setEnabled(not self._busy and self.package_info is not None)

    def _reset_info(self):
        self.package_info = None
        self.name_lbl.clear()
        self.summary_lbl.clear()
        self.version_combo.clear()

    # --- Search ---

    def do_search(self):
        term = self.search_input.text().strip()
        if not term or self._busy:
            return

        self.dialog.clear_message()
        self._reset_info()
        self._set_busy(True, f"Searching PyPI for {term}...")
        pypi_url = self.installation.settings.pypi_url
        self._start_worker(lambda: fetch_package_info(term, pypi_url), self._on_search_done, self._on_search_failed)

    @Slot(object)
    def _on_search_done(self, info):
        self.package_info = info
        self._set_busy(False)
        if not self.dialog.is_alive:
            return
        self.name_lbl.setText(info.name)
        self.summary_lbl.setText(info.summary or "No description")
        self.version_combo.addItems(info.versions)

    @Slot(str)
    def _on_search_failed(self, message):
        self._reset_info()
        self._set_busy(False)
        if self.dialog.is_alive:
            self.dialog.show_message(message, MessageLevel.ERROR)

    # --- Install ---

    def install_selected(self):
        if not self.package_info or self._busy:
            return
        name = self.package_info.name
        version = self.version_combo.currentText()
        try:
            requirement = build_requirement(name, version)
        except ValueError as e:
            self.dialog.show_message(str(e), MessageLevel.ERROR)
            return

        self.dialog.clear_message()
        self._set_busy(True, f"Installing {requirement}...")
        self._start_worker(
            lambda: self.installation.install_pip_packages([(name, version)]) or requirement,
            self._on_installed, self._on_install_failed
        )

    @Slot(object)
    def _on_installed(self, requirement):
        self._set_busy(False)
        if not self.dialog.is_alive:
            return
        self.dialog.show_message(f"Installed {requirement}", MessageLevel.INFORMATION)
        self.package_installed.emit(requirement)

    @Slot(str)
    def _on_install_failed(self, message):
        self._set_busy(False)
        if self.dialog.is_alive:
            self.dialog.show_message(message, MessageLevel.ERROR)

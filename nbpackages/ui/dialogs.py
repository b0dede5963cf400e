from PySide6.QtWidgets import QDialog, QVBoxLayout, QDialogButtonBox, QTabWidget
from PySide6.QtCore import Slot

from ..utils import logger
from .tabs import InstalledPackagesTab, AddNewPackageTab
from .widgets import MessageBanner, MessageLevel

# --- Dialogs ---

class ManagePackagesDialog(QDialog):
    """Dialog listing, installing and removing the notebook interpreter's packages."""

    DIALOG_TITLE = "Manage Packages"
    CLOSE_BUTTON_TEXT = "Close"
    INSTALLED_TAB_TITLE = "Installed"
    ADD_NEW_TAB_TITLE = "Add new"

    def __init__(self, installation, parent=None):
        super().__init__(parent)
        self.installation = installation
        self._alive = False
        self.setup_ui()

    def setup_ui(self):
        self.setWindowTitle(self.DIALOG_TITLE)
        self.resize(800, 600)
        layout = QVBoxLayout(self)

        self.message_banner = MessageBanner()
        layout.addWidget(self.message_banner)

        self.tabs = QTabWidget()
        self.installed_tab = InstalledPackagesTab(self, self.installation)
        self.add_new_tab = AddNewPackageTab(self, self.installation)
        self.tabs.addTab(self.installed_tab, self.INSTALLED_TAB_TITLE)
        self.tabs.addTab(self.add_new_tab, self.ADD_NEW_TAB_TITLE)
        self.tabs.currentChanged.connect(self.on_tab_changed)
        layout.addWidget(self.tabs, 1)

        # Only a close button: nothing here needs confirming.
        button_box = QDialogButtonBox()
        self.close_btn = button_box.addButton(self.CLOSE_BUTTON_TEXT, QDialogButtonBox.RejectRole)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

    @property
    def is_alive(self) -> bool:
        return self._alive

    def show_dialog(self):
        """Open the dialog on the Installed tab and fetch the package list."""
        self._alive = True
        self.message_banner.clear_message()
        if self.tabs.currentWidget() is not self.installed_tab:
            # currentChanged triggers the load
            self.tabs.setCurrentWidget(self.installed_tab)
        else:
            self.installed_tab.load_packages()
        self.show()
        self.raise_()
        self.activateWindow()

    @Slot(int)
    def on_tab_changed(self, index):
        if self.tabs.widget(index) is self.installed_tab:
            self.installed_tab.load_packages()

    def show_message(self, text: str, level: MessageLevel = MessageLevel.ERROR):
        if level is MessageLevel.ERROR:
            logger.error(f"Manage Packages: {text}")
        self.message_banner.show_message(text, level)

    def clear_message(self):
        self.message_banner.clear_message()

    def done(self, result):
        """Results of workers still running after close are dropped."""
        self._alive = False
        super().done(result)

    def wait_for_workers(self, timeout_ms: int = 5000):
        self.installed_tab.wait_for_workers(timeout_ms)
        self.add_new_tab.wait_for_workers(timeout_ms)

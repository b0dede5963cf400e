"""
Tests for the Manage Packages dialog, run on the offscreen Qt platform
"""

import time
from unittest.mock import patch

import pytest

from nbpackages.core import InstallationError
from nbpackages.pypi import PackageInfo, PackageNotFoundError
from nbpackages.ui.dialogs import ManagePackagesDialog
from nbpackages.ui.widgets import MessageLevel

from conftest import FakeInstallation

pytestmark = pytest.mark.gui


def settle(qapp, tab, timeout=5.0):
    """Let the tab's worker finish and deliver its queued signals."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if tab._worker is not None:
            tab._worker.wait(100)
        qapp.processEvents()
        if not tab.is_busy and (tab._worker is None or tab._worker.isFinished()):
            return
    raise AssertionError("background task did not finish")


def table_rows(tab):
    table = tab.packages_table
    return [[table.item(r, c).text() for c in range(table.columnCount())] for r in range(table.rowCount())]


@pytest.fixture
def make_dialog(qapp):
    dialogs = []

    def factory(installation):
        dialog = ManagePackagesDialog(installation)
        dialogs.append(dialog)
        return dialog

    yield factory
    for dialog in dialogs:
        dialog.wait_for_workers()
        dialog.done(0)
        dialog.deleteLater()
    qapp.processEvents()


class TestLayout:

    def test_title_tabs_and_close_button(self, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)

        assert dialog.windowTitle() == "Manage Packages"
        assert dialog.tabs.count() == 2
        assert dialog.tabs.tabText(0) == "Installed"
        assert dialog.tabs.tabText(1) == "Add new"
        assert dialog.close_btn.text() == "Close"

    def test_initial_state(self, make_dialog, fake_installation):
        tab = make_dialog(fake_installation).installed_tab

        assert tab.package_count_label.text() == "0 packages found in '/env/bin'"
        assert tab.packages_table.rowCount() == 0
        assert [tab.packages_table.horizontalHeaderItem(i).text() for i in range(3)] == \
            ["Name", "Installed On", "Version"]
        assert not tab.loading.is_loading
        assert tab.dialog.message_banner.isHidden()


class TestInstalledTab:

    def test_loaded_records_become_rows(self, make_dialog, fake_installation, sample_packages):
        dialog = make_dialog(fake_installation)
        dialog._alive = True
        tab = dialog.installed_tab
        tab._set_busy(True)

        tab._on_packages_loaded((sample_packages, "/env/lib/python3.11/site-packages"))

        assert table_rows(tab) == [
            ["ipykernel", "01/02/24", "6.29.0"],
            ["numpy", "03/04/24", "1.26.4"],
            ["pandas", "", "2.2.1"],
        ]
        assert tab.package_count_label.text() == "3 packages found in '/env/lib/python3.11/site-packages'"
        assert not tab.loading.is_loading
        assert not tab.is_busy

    def test_failure_shows_banner_and_clears_loading(self, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)
        dialog._alive = True
        tab = dialog.installed_tab
        tab._set_busy(True)

        tab._on_load_failed("Failed to list packages: pip is not installed")

        assert not dialog.message_banner.isHidden()
        assert dialog.message_banner.text() == "Failed to list packages: pip is not installed"
        assert dialog.message_banner.level is MessageLevel.ERROR
        assert not tab.loading.is_loading

    def test_results_after_close_are_dropped(self, make_dialog, fake_installation, sample_packages):
        dialog = make_dialog(fake_installation)
        tab = dialog.installed_tab
        tab._set_busy(True)

        tab._on_packages_loaded((sample_packages, "/somewhere"))

        assert tab.packages_table.rowCount() == 0
        assert not tab.loading.is_loading

    def test_show_dialog_loads_on_worker(self, qapp, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)

        dialog.show_dialog()
        assert dialog.is_alive
        settle(qapp, dialog.installed_tab)

        assert [row[0] for row in table_rows(dialog.installed_tab)] == ["ipykernel", "numpy", "pandas"]
        assert dialog.installed_tab.package_count_label.text() == \
            "3 packages found in '/env/lib/python3.11/site-packages'"
        assert dialog.message_banner.isHidden()

    def test_rejected_fetch_reaches_banner(self, qapp, make_dialog):
        installation = FakeInstallation(error=InstallationError("Failed to list packages: boom"))
        dialog = make_dialog(installation)

        dialog.show_dialog()
        settle(qapp, dialog.installed_tab)

        assert dialog.message_banner.text() == "Failed to list packages: boom"
        assert not dialog.installed_tab.loading.is_loading
        assert dialog.installed_tab.packages_table.rowCount() == 0

    def test_load_while_busy_is_ignored(self, make_dialog, fake_installation):
        tab = make_dialog(fake_installation).installed_tab
        tab._set_busy(True)

        tab.load_packages()

        assert tab._worker is None

    def test_activating_installed_tab_reloads(self, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)

        with patch.object(dialog.installed_tab, "load_packages") as mock_load:
            dialog.tabs.setCurrentIndex(1)
            mock_load.assert_not_called()
            dialog.tabs.setCurrentIndex(0)
            mock_load.assert_called_once_with()

    def test_closing_marks_dialog_dead(self, qapp, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)
        dialog.show_dialog()
        settle(qapp, dialog.installed_tab)

        dialog.reject()

        assert not dialog.is_alive

    def test_uninstall_selected(self, qapp, make_dialog, fake_installation):
        from PySide6.QtWidgets import QMessageBox

        dialog = make_dialog(fake_installation)
        dialog.show_dialog()
        tab = dialog.installed_tab
        settle(qapp, tab)
        tab.packages_table.selectRow(1)
        assert tab.selected_package_names() == ["numpy"]
        assert tab.uninstall_btn.isEnabled()

        with patch("nbpackages.ui.tabs.QMessageBox.question", return_value=QMessageBox.Yes):
            tab.uninstall_selected()
            settle(qapp, tab)

        assert fake_installation.uninstalled == ["numpy"]
        assert dialog.message_banner.text() == "Uninstalled numpy"
        assert dialog.message_banner.level is MessageLevel.INFORMATION
        # The list is fetched again and no longer shows the removed package.
        assert fake_installation.list_calls == 2
        assert [row[0] for row in table_rows(tab)] == ["ipykernel", "pandas"]
        assert tab.package_count_label.text() == "2 packages found in '/env/lib/python3.11/site-packages'"

    def test_uninstall_failure_shows_banner(self, qapp, make_dialog, sample_packages):
        from PySide6.QtWidgets import QMessageBox

        installation = FakeInstallation(
            packages=sample_packages,
            uninstall_error=InstallationError("Uninstall failed: Permission denied - try admin privileges"))
        dialog = make_dialog(installation)
        dialog.show_dialog()
        tab = dialog.installed_tab
        settle(qapp, tab)
        tab.packages_table.selectRow(0)

        with patch("nbpackages.ui.tabs.QMessageBox.question", return_value=QMessageBox.Yes):
            tab.uninstall_selected()
            settle(qapp, tab)

        assert dialog.message_banner.text() == "Uninstall failed: Permission denied - try admin privileges"
        assert dialog.message_banner.level is MessageLevel.ERROR
        assert not tab.loading.is_loading
        assert installation.list_calls == 1
        assert len(table_rows(tab)) == 3

    def test_uninstall_cancelled(self, qapp, make_dialog, fake_installation):
        from PySide6.QtWidgets import QMessageBox

        dialog = make_dialog(fake_installation)
        dialog.show_dialog()
        tab = dialog.installed_tab
        settle(qapp, tab)
        tab.packages_table.selectRow(0)

        with patch("nbpackages.ui.tabs.QMessageBox.question", return_value=QMessageBox.No):
            tab.uninstall_selected()

        assert fake_installation.uninstalled == []
        assert not tab.is_busy


class TestAddNewTab:

    def test_search_then_install(self, qapp, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)
        dialog._alive = True
        tab = dialog.add_new_tab
        info = PackageInfo("numpy", "Fundamental package for array computing", ["2.0.0", "1.26.4"])

        with patch("nbpackages.ui.tabs.fetch_package_info", return_value=info) as mock_fetch:
            tab.search_input.setText("numpy")
            tab.do_search()
            settle(qapp, tab)

        mock_fetch.assert_called_once_with("numpy", "https://pypi.example/pypi")
        assert tab.name_lbl.text() == "numpy"
        assert tab.summary_lbl.text() == "Fundamental package for array computing"
        assert [tab.version_combo.itemText(i) for i in range(tab.version_combo.count())] == ["2.0.0", "1.26.4"]
        assert tab.install_btn.isEnabled()

        tab.version_combo.setCurrentIndex(1)
        tab.install_selected()
        settle(qapp, tab)

        assert fake_installation.installed == [("numpy", "1.26.4")]
        assert dialog.message_banner.text() == "Installed numpy==1.26.4"
        assert dialog.message_banner.level is MessageLevel.INFORMATION
        assert not tab.loading.is_loading

    def test_search_failure(self, qapp, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)
        dialog._alive = True
        tab = dialog.add_new_tab

        error = PackageNotFoundError("Package not found on PyPI: nope")
        with patch("nbpackages.ui.tabs.fetch_package_info", side_effect=error):
            tab.search_input.setText("nope")
            tab.do_search()
            settle(qapp, tab)

        assert dialog.message_banner.text() == "Package not found on PyPI: nope"
        assert tab.package_info is None
        assert not tab.install_btn.isEnabled()
        assert not tab.loading.is_loading

    def test_empty_search_does_nothing(self, make_dialog, fake_installation):
        tab = make_dialog(fake_installation).add_new_tab
        tab.search_input.setText("   ")

        tab.do_search()

        assert tab._worker is None

    def test_install_failure_shows_banner(self, qapp, make_dialog):
        installation = FakeInstallation(install_error=InstallationError("Install failed: Package version not found"))
        dialog = make_dialog(installation)
        dialog._alive = True
        tab = dialog.add_new_tab
        info = PackageInfo("numpy", "Fundamental package for array computing", ["2.0.0"])

        with patch("nbpackages.ui.tabs.fetch_package_info", return_value=info):
            tab.search_input.setText("numpy")
            tab.do_search()
            settle(qapp, tab)

        tab.install_selected()
        settle(qapp, tab)

        assert dialog.message_banner.text() == "Install failed: Package version not found"
        assert dialog.message_banner.level is MessageLevel.ERROR
        assert not tab.loading.is_loading
        assert installation.installed == []

    def test_unsafe_version_is_refused_before_installing(self, make_dialog, fake_installation):
        dialog = make_dialog(fake_installation)
        dialog._alive = True
        tab = dialog.add_new_tab
        tab._on_search_done(PackageInfo("numpy", "", ["1.0; echo"]))

        tab.install_selected()

        assert tab._worker is None
        assert dialog.message_banner.text() == "Invalid version: 1.0; echo"
        assert dialog.message_banner.level is MessageLevel.ERROR
        assert fake_installation.installed == []

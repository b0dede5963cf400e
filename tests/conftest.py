import os
import sys

import pytest

# Widgets are built without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from nbpackages.config import Settings
from nbpackages.core import PackageRecord


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication(sys.argv[:1])
    yield app


class FakeInstallation:
    """Stands in for NotebookInstallation without running pip."""

    def __init__(self, packages=None, path="/env/lib/python3.11/site-packages", error=None,
                 install_error=None, uninstall_error=None):
        self.settings = Settings(pypi_url="https://pypi.example/pypi")
        self.python_executable = "/env/bin/python"
        self.python_bin_path = "/env/bin"
        self.packages = packages if packages is not None else []
        self.path = path
        self.error = error
        self.install_error = install_error
        self.uninstall_error = uninstall_error
        self.list_calls = 0
        self.installed = []
        self.uninstalled = []

    def get_installed_pip_packages(self):
        self.list_calls += 1
        if self.error:
            raise self.error
        return list(self.packages)

    get_installed_packages = get_installed_pip_packages

    def get_python_packages_path(self):
        return self.path

    def install_pip_packages(self, packages):
        if self.install_error:
            raise self.install_error
        self.installed.extend(packages)

    def uninstall_pip_packages(self, names):
        if self.uninstall_error:
            raise self.uninstall_error
        self.uninstalled.extend(names)
        self.packages = [p for p in self.packages if p.name not in names]


@pytest.fixture
def sample_packages():
    return [
        PackageRecord("ipykernel", "6.29.0", "01/02/24"),
        PackageRecord("numpy", "1.26.4", "03/04/24"),
        PackageRecord("pandas", "2.2.1", ""),
    ]


@pytest.fixture
def fake_installation(sample_packages):
    return FakeInstallation(packages=sample_packages)

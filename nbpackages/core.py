"""nbpackages: pip-backed installation service for the notebook interpreter"""

import os
import re
import json
import subprocess
from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Tuple, Optional

from packaging.utils import canonicalize_name

from .config import Settings
from .system import get_detector
from .utils import logger, run_pip_safe, build_requirement, validate_package_name

INSTALL_DATE_FORMAT = "%m/%d/%y"

_METADATA_DIR = re.compile(r'^(?P<name>.+?)-(?P<version>[^-]+?)(-py\d[^-]*)?\.(dist|egg)-info$')

PACKAGES_PATH_SCRIPT = "import sysconfig; print(sysconfig.get_paths()['purelib'])"


class InstallationError(Exception):
    """Listing, installing or removing packages failed."""


@dataclass
class PackageRecord:
    """An installed package as reported by pip."""
    name: str
    version: str
    install_date: str = ""

    def as_row(self) -> List[str]:
        return [self.name, self.install_date, self.version]


class NotebookInstallation:
    """Lists, installs and removes packages of the notebook's Python interpreter."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.python_executable = get_detector().get_actual_python_executable(self.settings.python_path)
        self.python_bin_path = os.path.dirname(self.python_executable)
        logger.info(f"Using Python interpreter: {self.python_executable}")

    def get_pip_command(self) -> List[str]:
        return [self.python_executable, "-m", "pip"]

    # --- Listing ---

    def get_installed_pip_packages(self) -> List[PackageRecord]:
        """Return the installed packages sorted by name.

        Tries `pip list --verbose` first (it reports install locations, so
        install dates can be filled in), then plain JSON, then `pip freeze`.
        """
        formats = [
            ["list", "--format", "json", "--verbose"],
            ["list", "--format", "json"],
            ["freeze"],
        ]

        last_error = None
        for fmt in formats:
            try:
                result = run_pip_safe(fmt, self.get_pip_command(), timeout=self.settings.list_timeout)
            except RuntimeError as e:
                raise InstallationError(f"Failed to list packages: {e}") from e

            try:
                if fmt[0] == "freeze":
                    packages = parse_freeze_output(result.stdout)
                else:
                    packages = parse_list_output(result.stdout)
            except (ValueError, TypeError, KeyError) as e:
                logger.debug(f"pip {' '.join(fmt)} output not usable: {e}")
                last_error = e
                continue

            packages.sort(key=lambda p: p.name.lower())
            logger.info(f"Got {len(packages)} packages via pip {' '.join(fmt)}")
            return packages

        raise InstallationError(f"Failed to list packages: could not parse pip output ({last_error})")

    def get_installed_packages(self) -> List[PackageRecord]:
        return self.get_installed_pip_packages()

    def get_python_packages_path(self) -> str:
        """Site-packages directory of the interpreter, for display."""
        try:
            result = subprocess.run(
                [self.python_executable, "-c", PACKAGES_PATH_SCRIPT],
                capture_output=True,
                text=True,
                timeout=self.settings.list_timeout,
                shell=False,
                encoding='utf-8',
                errors='replace'
            )
        except subprocess.TimeoutExpired:
            raise InstallationError(f"Timed out reading the packages path of {self.python_executable}")
        except OSError as e:
            raise InstallationError(f"Could not run {self.python_executable}: {e}") from e

        path = result.stdout.strip()
        if result.returncode != 0 or not path:
            error_msg = (result.stderr or "").strip()[:200] or "no output"
            raise InstallationError(f"Could not determine the packages path: {error_msg}")
        return path

    # --- Changes ---

    def install_pip_packages(self, packages: List[Tuple[str, str]]) -> None:
        """Install (name, version) pairs; an empty version means latest."""
        if not packages:
            raise ValueError("No packages to install")
        requirements = [build_requirement(name, version) for name, version in packages]

        try:
            run_pip_safe(["install"] + requirements, self.get_pip_command(), timeout=self.settings.pip_timeout)
        except RuntimeError as e:
            raise InstallationError(f"Install failed: {e}") from e
        logger.info(f"Installed {', '.join(requirements)}")

    def uninstall_pip_packages(self, names: List[str]) -> None:
        if not names:
            raise ValueError("No packages to uninstall")
        for name in names:
            is_valid, error_msg = validate_package_name(name)
            if not is_valid:
                raise ValueError(error_msg)

        try:
            run_pip_safe(["uninstall", "-y"] + list(names), self.get_pip_command(), timeout=self.settings.pip_timeout)
        except RuntimeError as e:
            raise InstallationError(f"Uninstall failed: {e}") from e
        logger.info(f"Uninstalled {', '.join(names)}")


def parse_list_output(stdout: str) -> List[PackageRecord]:
    """Parse `pip list --format json` output, verbose or not."""
    data = json.loads(stdout or "[]")
    if not isinstance(data, list):
        raise ValueError("pip list did not return a JSON array")

    dates_by_location: Dict[str, Dict[str, str]] = {}
    packages = []
    for pkg in data:
        name = pkg["name"]
        version = pkg.get("version", "Unknown")
        install_date = ""
        location = pkg.get("location")
        if location:
            if location not in dates_by_location:
                dates_by_location[location] = scan_install_dates(location)
            install_date = dates_by_location[location].get(canonicalize_name(name), "")
        packages.append(PackageRecord(name=name, version=version, install_date=install_date))
    return packages


def parse_freeze_output(stdout: str) -> List[PackageRecord]:
    """Parse `pip freeze`; editable requirements are skipped.

    Raises ValueError when there is output but not a single requirement line
    in it, so a garbled listing is not shown as an empty environment.
    """
    packages = []
    unparsed = 0
    for line in (stdout or "").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("-e"):
            continue
        if '==' in line:
            name, version = line.split('==', 1)
            packages.append(PackageRecord(name=name.strip(), version=version.strip()))
        elif ' @ ' in line:
            packages.append(PackageRecord(name=line.split(' @ ', 1)[0].strip(), version="Unknown"))
        else:
            unparsed += 1
    if unparsed and not packages:
        raise ValueError(f"pip freeze output could not be parsed ({unparsed} unrecognised lines)")
    return packages


def scan_install_dates(location: str) -> Dict[str, str]:
    """Map normalized package names to the mtime of their metadata folder."""
    dates = {}
    try:
        entries = list(os.scandir(location))
    except OSError as e:
        logger.debug(f"Cannot scan {location}: {e}")
        return dates

    for entry in entries:
        match = _METADATA_DIR.match(entry.name)
        if not match:
            continue
        try:
            mtime = entry.stat().st_mtime
        except OSError:
            continue
        dates[canonicalize_name(match.group("name"))] = datetime.fromtimestamp(mtime).strftime(INSTALL_DATE_FORMAT)
    return dates

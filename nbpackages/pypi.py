"""PyPI JSON API lookups for the Add new tab."""

import json
import urllib.error
import urllib.parse
from contextlib import closing
from dataclasses import dataclass, field
from typing import List

from packaging.version import Version, InvalidVersion

from .config import DEFAULT_PYPI_URL
from .utils import logger, safe_urlopen, validate_package_name, MAX_JSON_SIZE


class PyPIError(Exception):
    """The package index could not be queried."""


class PackageNotFoundError(PyPIError):
    pass


@dataclass
class PackageInfo:
    name: str
    summary: str = ""
    versions: List[str] = field(default_factory=list)

    @property
    def latest_version(self) -> str:
        return self.versions[0] if self.versions else ""


def fetch_package_info(package_name: str, index_url: str = DEFAULT_PYPI_URL, timeout: int = 10) -> PackageInfo:
    """Fetch name, summary and available versions of a package, newest first."""
    package_name = (package_name or "").strip()
    is_valid, error_msg = validate_package_name(package_name)
    if not is_valid:
        raise ValueError(error_msg)

    url = f"{index_url.rstrip('/')}/{urllib.parse.quote(package_name.lower())}/json"
    try:
        with closing(safe_urlopen(url, timeout=timeout)) as response:
            raw = response.read(MAX_JSON_SIZE + 1)
    except urllib.error.HTTPError as e:
        if e.code == 404:
            raise PackageNotFoundError(f"Package not found on PyPI: {package_name}")
        raise PyPIError(f"PyPI returned HTTP {e.code} for {package_name}") from e
    except (urllib.error.URLError, OSError) as e:
        raise PyPIError(f"Could not reach PyPI: {e}") from e

    if len(raw) > MAX_JSON_SIZE:
        raise PyPIError("Response too large")

    try:
        data = json.loads(raw)
    except ValueError as e:
        raise PyPIError(f"Invalid response from PyPI: {e}") from e

    info = data.get("info") or {}
    releases = data.get("releases") or {}

    # Releases without any uploaded file cannot be installed.
    parsed = []
    for v, files in releases.items():
        if not files:
            continue
        try:
            parsed.append((Version(v), v))
        except InvalidVersion:
            logger.debug(f"Skipping non PEP 440 release {v!r} of {package_name}")
    parsed.sort(reverse=True)
    versions = [v for _, v in parsed]
    if not versions and info.get("version"):
        versions = [info["version"]]

    logger.info(f"Fetched {len(versions)} versions of {package_name} from PyPI")
    return PackageInfo(
        name=info.get("name") or package_name,
        summary=info.get("summary") or "",
        versions=versions,
    )

"""📦 Notebook Packages - Utilities Module"""

import logging
import subprocess
import re
import time
import ssl
import urllib.request
import urllib.error
import urllib.parse
from typing import List, Tuple, Optional


# Theme configuration
COLORS = {
    "bg": "#0d0d0d",
    "surface": "#141414",
    "card": "#1e1e1e",
    "accent": "#00a8c8",
    "accent_hover": "#00bcd4",
    "text": "#e0e0e0",
    "subtext": "#888888",
    "success": "#4caf50",
    "warning": "#ff9800",
    "danger": "#f44336",
    "border": "#333333",
    "progress_bg": "#2a2a2a",
    "progress_fg": "#00a8c8"
}

# Production logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger('nbpackages')

# Security constants
MAX_PACKAGE_NAME_LENGTH = 100
MAX_URL_LENGTH = 2000
MAX_COMMAND_LENGTH = 10000
MAX_JSON_SIZE = 30_000_000
MAX_REQUEST_ATTEMPTS = 3
REQUEST_RETRY_DELAY = 2

PACKAGE_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9._-]*[a-zA-Z0-9])?$')


def validate_package_name(name: str) -> Tuple[bool, Optional[str]]:
    """Validate PyPI package names securely."""
    if not name or not isinstance(name, str):
        return False, "Package name must be a non-empty string"

    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        return False, f"Package name too long (max {MAX_PACKAGE_NAME_LENGTH} characters)"

    if not PACKAGE_NAME_PATTERN.match(name):
        return False, f"Invalid package name format: {name[:50]}"

    return True, None


def validate_version(version: str) -> Tuple[bool, Optional[str]]:
    """Versions are pinned with '==', so only PEP 440 characters are allowed."""
    if not version:
        return True, None
    if len(version) > 64 or not re.match(r'^[A-Za-z0-9.+!_-]+$', version):
        return False, f"Invalid version: {version[:50]}"
    return True, None


def build_requirement(name: str, version: str = "") -> str:
    """Turn a name/version pair into a pip requirement, rejecting anything unsafe."""
    is_valid, error_msg = validate_package_name(name)
    if not is_valid:
        raise ValueError(error_msg)
    is_valid, error_msg = validate_version(version)
    if not is_valid:
        raise ValueError(error_msg)
    return f"{name}=={version}" if version else name


def run_pip_safe(args: List[str], pip_cmd: List[str], timeout: int = 300) -> subprocess.CompletedProcess:
    """Execute pip for the given interpreter and return the completed process.

    Raises RuntimeError with a user facing message when pip cannot be run,
    times out, or exits with a non-zero status.
    """
    if not args:
        raise ValueError("No arguments provided")

    total_length = sum(len(arg) for arg in args)
    if total_length > MAX_COMMAND_LENGTH:
        raise ValueError(f"Command too long (max {MAX_COMMAND_LENGTH} characters)")

    cmd = list(pip_cmd) + list(args)
    safe_log = ' '.join(args[:3]) + (' ...' if len(args) > 3 else '')
    logger.info(f"Executing pip: {safe_log}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
            shell=False,
            encoding='utf-8',
            errors='replace'
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Pip timeout after {timeout}s")
        raise RuntimeError(f"Operation timed out after {timeout} seconds")
    except FileNotFoundError:
        logger.error(f"Python/pip not found: {pip_cmd[0]}")
        raise RuntimeError(f"Python interpreter not found: {pip_cmd[0]}")

    if result.returncode != 0:
        error_msg = (result.stderr or "").strip()[:500] or "Unknown error"
        logger.error(f"Pip failed (code {result.returncode}): {error_msg}")

        # User-friendly errors
        if "PermissionError" in error_msg or "permission denied" in error_msg.lower():
            raise RuntimeError("Permission denied - try admin privileges")
        elif "No module named pip" in error_msg:
            raise RuntimeError("pip is not installed for this Python interpreter")
        elif "Could not find a version" in error_msg:
            raise RuntimeError(f"Package version not found: {error_msg[:100]}")
        else:
            raise RuntimeError(f"Command failed: {error_msg[:200]}")

    if result.stdout:
        logger.debug(f"Pip output: {result.stdout[:200]}...")

    return result


def create_secure_ssl_context() -> ssl.SSLContext:
    """Create SSL context with modern security."""
    context = ssl.create_default_context()
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


def safe_urlopen(url: str, timeout: int = 10, headers=None, max_attempts: int = MAX_REQUEST_ATTEMPTS):
    """Open a URL with retry logic.

    HTTP 404 is raised straight away so callers can tell a missing package
    from a network problem; other failures are retried and the last error is
    re-raised.
    """
    if not url or not isinstance(url, str):
        raise ValueError(f"Invalid URL: {url}")

    if len(url) > MAX_URL_LENGTH:
        raise ValueError(f"URL too long: {len(url)} characters")

    parsed = urllib.parse.urlparse(url)
    if not parsed.scheme or parsed.scheme not in ['http', 'https']:
        raise ValueError(f"Invalid URL scheme: {url}")

    req_headers = {
        'User-Agent': 'nbpackages',
        'Accept': 'application/json',
    }
    if headers:
        req_headers.update(headers)

    for attempt in range(max_attempts):
        try:
            req = urllib.request.Request(url, headers=req_headers)
            context = create_secure_ssl_context() if parsed.scheme == 'https' else None
            return urllib.request.urlopen(req, timeout=timeout, context=context)
        except urllib.error.HTTPError as e:
            if e.code == 404 or attempt == max_attempts - 1:
                raise
            logger.warning(f"HTTP error {e.code} for {url}, retrying")
        except (urllib.error.URLError, OSError) as e:
            if attempt == max_attempts - 1:
                logger.error(f"URL open error: {e}")
                raise
            logger.warning(f"URL open error: {e}, retrying")
        time.sleep(REQUEST_RETRY_DELAY)


def safe_string_truncate(text: str, max_length: int) -> str:
    """Safely truncate string to specified length."""
    if not text:
        return text

    if len(text) > max_length:
        return text[:max_length] + "..."

    return text


"""
System Detector
Handles interpreter detection and logging set-up.
"""
import os
import sys
import logging
import subprocess
from typing import Optional

from .utils import logger


def validate_python_executable(path: str) -> bool:
    """Validate that a given path is a working Python interpreter."""
    if not path or not os.path.exists(path):
        return False
    try:
        result = subprocess.run(
            [path, "-c", "import sys; print(sys.version_info[:2])"],
            capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (OSError, subprocess.SubprocessError):
        return False


def configure_logging(level: str) -> None:
    """Apply the configured level to the application logger."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        logger.warning(f"Unknown log level {level!r}, keeping INFO")
        numeric = logging.INFO
    logger.setLevel(numeric)


class SystemDetector:
    """Detects the Python interpreter the dialog manages."""

    def __init__(self):
        self.is_frozen = getattr(sys, 'frozen', False)
        self._cached_python_path = None

    def get_actual_python_executable(self, preferred: Optional[str] = None) -> str:
        """
        Finds a valid Python interpreter.
        An explicitly configured path wins; otherwise active virtual/conda
        environments, then the running interpreter. In frozen mode
        sys.executable is the app itself, so it is only a last resort.
        """
        if preferred:
            if not validate_python_executable(preferred):
                raise ValueError(f"Not a working Python interpreter: {preferred}")
            return preferred

        if self._cached_python_path:
            return self._cached_python_path

        if not self.is_frozen:
            self._cached_python_path = sys.executable
            return self._cached_python_path

        logger.info("Searching for valid Python interpreter...")
        exe = "python.exe" if sys.platform == "win32" else "python"
        bin_dir = "Scripts" if sys.platform == "win32" else "bin"

        candidates = []
        if os.environ.get('VIRTUAL_ENV'):
            candidates.append(os.path.join(os.environ['VIRTUAL_ENV'], bin_dir, exe))
        if os.environ.get('CONDA_PREFIX'):
            prefix = os.environ['CONDA_PREFIX']
            candidates.append(os.path.join(prefix, exe) if sys.platform == "win32"
                              else os.path.join(prefix, bin_dir, exe))
        for p in os.environ.get('PATH', '').split(os.pathsep):
            if p:
                candidates.append(os.path.join(p, exe))
                candidates.append(os.path.join(p, "python3"))

        seen = set()
        for path in candidates:
            path = os.path.normpath(os.path.abspath(path))
            if path in seen:
                continue
            seen.add(path)

            if validate_python_executable(path):
                logger.info(f"Found valid Python: {path}")
                self._cached_python_path = path
                return path

        logger.warning("No valid Python found.")
        self._cached_python_path = sys.executable
        return self._cached_python_path


# Singleton
_instance = None

def get_detector() -> SystemDetector:
    global _instance
    if _instance is None:
        _instance = SystemDetector()
    return _instance

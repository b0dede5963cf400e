"""nbpackages: view and manage the Python packages of a notebook runtime."""

__version__ = "0.1.0"

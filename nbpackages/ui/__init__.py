from .dialogs import ManagePackagesDialog
from .widgets import MessageLevel

__all__ = ["ManagePackagesDialog", "MessageLevel"]

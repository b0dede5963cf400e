from enum import Enum

from PySide6.QtWidgets import QLabel, QProgressBar, QWidget, QHBoxLayout
from PySide6.QtCore import Qt, Signal, QThread

from ..utils import logger, COLORS

# --- Workers ---

class GenericWorker(QThread):
    """Universal worker for background tasks"""
    succeeded = Signal(object)
    failed = Signal(str)

    def __init__(self, target, *args, **kwargs):
        super().__init__()
        self.target = target
        self.args = args
        self.kwargs = kwargs

    def run(self):
        try:
            result = self.target(*self.args, **self.kwargs)
        except Exception as e:
            logger.error(f"Background task {getattr(self.target, '__name__', self.target)} failed: {e}")
            self.failed.emit(str(e) or e.__class__.__name__)
            return
        self.succeeded.emit(result)

# --- Banner ---

class MessageLevel(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"


_LEVEL_COLORS = {
    MessageLevel.ERROR: COLORS["danger"],
    MessageLevel.WARNING: COLORS["warning"],
    MessageLevel.INFORMATION: COLORS["accent"],
}


class MessageBanner(QLabel):
    """Dialog-level message strip; hidden while there is nothing to say."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("message_banner")
        self.setWordWrap(True)
        self.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self.level = None
        self.hide()

    def show_message(self, text: str, level: MessageLevel = MessageLevel.ERROR):
        self.level = level
        color = _LEVEL_COLORS[level]
        self.setStyleSheet(
            f"color: {COLORS['text']}; background-color: {COLORS['card']};"
            f" border-left: 4px solid {color}; border-radius: 4px; padding: 8px;"
        )
        self.setText(text)
        self.show()

    def clear_message(self):
        self.level = None
        self.clear()
        self.hide()

# --- Loading ---

class LoadingIndicator(QWidget):
    """Indeterminate progress bar with a caption."""

    def __init__(self, text: str = "Loading...", parent=None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.label = QLabel(text)
        self.label.setStyleSheet(f"color: {COLORS['subtext']};")
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 0)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(6)

        layout.addWidget(self.label)
        layout.addWidget(self.progress_bar, 1)
        self.hide()

    def set_loading(self, loading: bool, text: str = None):
        if text:
            self.label.setText(text)
        self.setVisible(loading)

    @property
    def is_loading(self) -> bool:
        return not self.isHidden()

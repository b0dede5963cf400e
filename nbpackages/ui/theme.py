from PySide6.QtCore import Qt, QObject
from PySide6.QtGui import QFont, QColor, QPalette
from PySide6.QtWidgets import QStyleFactory

from ..utils import COLORS


class QtTheme(QObject):
    """Manages Qt application theme"""

    def __init__(self):
        super().__init__()
        self.COLORS = dict(COLORS)

    def apply_to_app(self, app):
        """Apply theme to QApplication instance"""
        if "Fusion" in QStyleFactory.keys():
            app.setStyle(QStyleFactory.create("Fusion"))

        self.apply_palette(app)
        app.setStyleSheet(self.stylesheet())
        app.setFont(QFont("Segoe UI", 10))

    def apply_palette(self, app):
        """Apply color palette to application"""
        palette = QPalette()
        palette.setColor(QPalette.Window, QColor(self.COLORS["bg"]))
        palette.setColor(QPalette.WindowText, QColor(self.COLORS["text"]))
        palette.setColor(QPalette.Base, QColor(self.COLORS["card"]))
        palette.setColor(QPalette.AlternateBase, QColor(self.COLORS["surface"]))
        palette.setColor(QPalette.Text, QColor(self.COLORS["text"]))
        palette.setColor(QPalette.Button, QColor(self.COLORS["surface"]))
        palette.setColor(QPalette.ButtonText, QColor(self.COLORS["text"]))
        palette.setColor(QPalette.Highlight, QColor(self.COLORS["accent"]))
        palette.setColor(QPalette.HighlightedText, Qt.black)
        palette.setColor(QPalette.Disabled, QPalette.Text, QColor(self.COLORS["subtext"]))
        palette.setColor(QPalette.Disabled, QPalette.ButtonText, QColor(self.COLORS["subtext"]))
        app.setPalette(palette)

    def stylesheet(self) -> str:
        return f"""
        QDialog {{ background-color: {self.COLORS["bg"]}; }}
        QWidget {{ color: {self.COLORS["text"]}; font-family: 'Segoe UI'; }}

        /* Buttons */
        QPushButton {{
            background-color: {self.COLORS["accent"]};
            color: white;
            border: none;
            padding: 8px 18px;
            border-radius: 6px;
            font-weight: bold;
        }}
        QPushButton:hover {{ background-color: {self.COLORS["accent_hover"]}; }}
        QPushButton:disabled {{ background-color: {self.COLORS["surface"]}; color: {self.COLORS["subtext"]}; border: 1px solid {self.COLORS["border"]}; }}

        /* Inputs */
        QLineEdit, QComboBox {{
            background-color: {self.COLORS["card"]};
            border: 1px solid {self.COLORS["border"]};
            border-radius: 6px;
            padding: 6px;
        }}
        QLineEdit:focus, QComboBox:hover {{ border: 1px solid {self.COLORS["accent"]}; }}

        /* Tabs */
        QTabWidget::pane {{ border: 1px solid {self.COLORS["border"]}; border-radius: 6px; }}
        QTabBar::tab {{
            background-color: {self.COLORS["surface"]};
            color: {self.COLORS["subtext"]};
            padding: 8px 20px;
            border-top-left-radius: 6px;
            border-top-right-radius: 6px;
        }}
        QTabBar::tab:selected {{ color: {self.COLORS["accent"]}; background-color: {self.COLORS["card"]}; }}

        /* Table */
        QTableWidget {{
            background-color: {self.COLORS["surface"]};
            alternate-background-color: {self.COLORS["card"]};
            border: 1px solid {self.COLORS["border"]};
            border-radius: 6px;
            gridline-color: {self.COLORS["border"]};
        }}
        QHeaderView::section {{
            background-color: {self.COLORS["bg"]};
            color: {self.COLORS["subtext"]};
            padding: 8px;
            border: none;
            font-weight: bold;
        }}

        /* Progress */
        QProgressBar {{ border: none; border-radius: 3px; background-color: {self.COLORS["progress_bg"]}; }}
        QProgressBar::chunk {{ background-color: {self.COLORS["progress_fg"]}; border-radius: 3px; }}
        """

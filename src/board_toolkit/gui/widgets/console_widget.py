"""
Console widget for displaying logs.
"""
from datetime import datetime
from typing import Set

from PySide6.QtWidgets import (
    QGroupBox, QVBoxLayout, QPlainTextEdit, QMenu, QApplication, QSizePolicy
)
from PySide6.QtGui import QFont, QTextCursor, QColor, QTextCharFormat
from PySide6.QtCore import Slot


MAX_LINES = 1000

TEXT_COLOR = "#1f2933"
ERROR_COLOR = "#c62828"
WARNING_COLOR = "#b26a00"
SUCCESS_COLOR = "#2e7d32"

# Levels hidden from the console, e.g. {"info"}
CONSOLE_SUPPRESSED_LEVELS: Set[str] = set()


class ConsoleWidget(QGroupBox):
    def __init__(self, parent=None):
        super().__init__("Console Log", parent)

        self.suppressed_levels: Set[str] = CONSOLE_SUPPRESSED_LEVELS.copy()

        self.setMinimumHeight(40)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.text_edit = QPlainTextEdit()
        self.text_edit.setReadOnly(True)
        self.text_edit.setLineWrapMode(QPlainTextEdit.LineWrapMode.WidgetWidth)
        self.text_edit.setFont(QFont("Menlo"))
        self.layout.addWidget(self.text_edit)

        self.format_info = QTextCharFormat()
        self.format_info.setForeground(QColor(TEXT_COLOR))

        self.format_error = QTextCharFormat()
        self.format_error.setForeground(QColor(ERROR_COLOR))

        self.format_warning = QTextCharFormat()
        self.format_warning.setForeground(QColor(WARNING_COLOR))

        self.format_success = QTextCharFormat()
        self.format_success.setForeground(QColor(SUCCESS_COLOR))

    @Slot(str, str)
    def append_log(self, level: str, message: str):
        """Appends a log message with color coding based on level."""
        if level.lower() in self.suppressed_levels:
            return

        cursor = self.text_edit.textCursor()
        cursor.movePosition(QTextCursor.MoveOperation.End)

        fmt = self.format_info
        if level.lower() in ("error", "critical"):
            fmt = self.format_error
        elif level.lower() in ("warning", "warn"):
            fmt = self.format_warning
        elif level.lower() in ("success", "ok"):
            fmt = self.format_success

        timestamp = datetime.now().strftime("%H:%M:%S")
        cursor.insertText(f"[{timestamp}] [{level.upper()}] {message}\n", fmt)

        self.text_edit.setTextCursor(cursor)
        self.text_edit.ensureCursorVisible()

        doc = self.text_edit.document()
        if doc.lineCount() > MAX_LINES:
            cursor = self.text_edit.textCursor()
            cursor.movePosition(QTextCursor.MoveOperation.Start)
            cursor.movePosition(
                QTextCursor.MoveOperation.Down,
                QTextCursor.MoveMode.KeepAnchor,
                doc.lineCount() - MAX_LINES,
            )
            cursor.removeSelectedText()

    def contextMenuEvent(self, event):
        menu = QMenu(self)
        copy_all_action = menu.addAction("Copy All")
        menu.addSeparator()
        clear_action = menu.addAction("Clear")

        action = menu.exec(event.globalPos())
        if action == copy_all_action:
            QApplication.clipboard().setText(self.text_edit.toPlainText())
        elif action == clear_action:
            self.clear()

    def plain_text(self) -> str:
        return self.text_edit.toPlainText()

    def clear(self):
        self.text_edit.clear()

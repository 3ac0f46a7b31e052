"""
Main Window for the script distribution GUI.
"""
import queue

from PySide6.QtWidgets import QMainWindow, QSplitter, QMessageBox
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction

from board_toolkit import __version__
from board_toolkit.distribution.controller import DistributionController
from board_toolkit.gui.utils.logging_utils import attach_queue_handler, detach_queue_handler, drain_queue
from board_toolkit.gui.widgets.console_widget import ConsoleWidget
from board_toolkit.gui.widgets.distribution_tab import DistributionTab


class MainWindow(QMainWindow):
    def __init__(self, controller: DistributionController, confirm_commit: bool = True):
        super().__init__()
        self.setWindowTitle("Script Distribution")
        self.resize(1200, 800)

        file_menu = self.menuBar().addMenu("File")
        exit_action = QAction("Quit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        help_menu = self.menuBar().addMenu("Help")
        about_action = QAction("About", self)
        about_action.triggered.connect(self._show_about)
        help_menu.addAction(about_action)

        # Engine logs reach the console through a queue drained on the GUI thread
        self.log_queue = queue.Queue()
        self.log_handler = attach_queue_handler(self.log_queue, "board_toolkit")
        self.log_timer = QTimer(self)
        self.log_timer.timeout.connect(self._drain_log_queue)
        self.log_timer.start(100)

        self.console = ConsoleWidget()
        self.distribution_tab = DistributionTab(controller, self.console, confirm_commit=confirm_commit)

        self.splitter = QSplitter(Qt.Orientation.Vertical)
        self.splitter.addWidget(self.distribution_tab)
        self.splitter.addWidget(self.console)
        self.splitter.setStretchFactor(0, 4)
        self.splitter.setStretchFactor(1, 1)
        self.setCentralWidget(self.splitter)

        self.statusBar().showMessage(f"board_toolkit {__version__}")

    def _drain_log_queue(self):
        for text, level in drain_queue(self.log_queue):
            self.console.append_log(level, text)

    def _show_about(self):
        QMessageBox.about(
            self,
            "About",
            f"Script Distribution\nVersion {__version__}\n\n"
            "Allocate ungraded answer scripts to examiners.",
        )

    def closeEvent(self, event):
        self.log_timer.stop()
        detach_queue_handler(self.log_handler, "board_toolkit")
        super().closeEvent(event)

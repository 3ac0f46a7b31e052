"""
Entry point for the PySide6 distribution GUI.

Usage:
    board-toolkit-gui [STORE.json] [SHEET_DIR] [SHEET_FONT.ttf]

The store defaults to ``distribution_store.json`` in the working
directory; distribution sheets are only written when SHEET_DIR is given.
SHEET_FONT is a TrueType font with Bengali glyphs for examiner names.
"""
import logging
import sys
from pathlib import Path

DEFAULT_STORE = "distribution_store.json"


def run():
    """
    Main entry point for the GUI application.
    """
    from PySide6.QtWidgets import QApplication

    from board_toolkit.distribution.config import DistributionConfig
    from board_toolkit.distribution.controller import DistributionController
    from board_toolkit.distribution.store.json_store import JsonScriptStore
    from board_toolkit.gui.main_window import MainWindow

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    args = sys.argv[1:]
    store_path = Path(args[0]) if args else Path.cwd() / DEFAULT_STORE
    config = DistributionConfig(
        sheet_output_dir=Path(args[1]) if len(args) > 1 else None,
        sheet_font_path=Path(args[2]) if len(args) > 2 else None,
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Script Distribution")
    app.setApplicationDisplayName("Script Distribution")

    controller = DistributionController(JsonScriptStore(store_path), config)
    window = MainWindow(controller)
    window.show()
    logging.getLogger(__name__).info(f"Using store {store_path}")

    sys.exit(app.exec())


if __name__ == "__main__":
    run()

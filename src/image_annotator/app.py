"""Application bootstrap for Image Annotator."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from . import __version__
from .ui.main_window import MainWindow

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


def create_application() -> QApplication:
    """
    Create and configure the Qt application.

    Returns:
        Configured QApplication instance
    """
    app = QApplication(sys.argv)
    app.setApplicationName("Image Annotator")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("Image Annotator")
    return app


def create_main_window() -> MainWindow:
    """
    Create the main application window.

    Returns:
        MainWindow instance
    """
    return MainWindow()


def run() -> int:
    """
    Run the Image Annotator application.

    An image path given as the first command line argument is opened
    on startup.

    Returns:
        Exit code
    """
    logger.info("Starting Image Annotator")

    try:
        app = create_application()
        logger.info("QApplication created")

        window = create_main_window()
        logger.info("MainWindow created")

        window.show()
        logger.info("MainWindow shown")

        args = app.arguments()[1:]
        if args:
            window.open_image_path(Path(args[0]))

        return app.exec()

    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        return 1


def main() -> None:
    """Main entry point for the application."""
    sys.exit(run())


if __name__ == "__main__":
    main()

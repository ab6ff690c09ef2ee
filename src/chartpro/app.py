"""Application bootstrap for ChartPro."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from . import __version__
from .core.config import DEFAULT_CONFIG_PATH
from .ui.main_window import MainWindow

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Send log records from every chartpro module to stdout."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def create_application(argv: list[str]) -> QApplication:
    """
    Create the Qt application for the chart window.

    Args:
        argv: Command line passed through to Qt

    Returns:
        QApplication with ChartPro's name and version set
    """
    app = QApplication(argv)
    app.setApplicationName("ChartPro")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("ChartPro")
    return app


def run(config_path: Path = DEFAULT_CONFIG_PATH) -> int:
    """
    Show the chart window and run the event loop.

    Args:
        config_path: YAML settings file for snap defaults and recent files

    Returns:
        Exit code
    """
    logger.info(f"ChartPro {__version__} starting with settings from {config_path}")

    try:
        app = create_application(sys.argv)
        window = MainWindow(config_path=config_path)
        window.show()
        return app.exec()
    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        return 1


def main() -> None:
    """Console entry point."""
    configure_logging()
    sys.exit(run())


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Diagram Editor - Main Entry Point

An interactive editor for boxes, ellipses and text labels joined by
directional connectors anchored to shape edges.

Usage:
    python main.py
    python main.py --debug                 # Enable debug logging
    python main.py --settings path.json    # Use a specific settings file
"""

import sys
import logging
import argparse
from PyQt6.QtWidgets import QApplication
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont, QPalette, QColor

from services import get_settings


def setup_logging(debug: bool = False):
    """Configure logging for the application."""
    level = logging.DEBUG if debug else logging.INFO

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Log startup message
    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized at {'DEBUG' if debug else 'INFO'} level")


def setup_application() -> QApplication:
    """Configure the Qt application."""
    # High DPI support
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Diagram Editor")
    app.setApplicationVersion("0.1.0")
    app.setOrganizationName("diagram-editor")

    # Set default font
    font = QFont("Segoe UI", 10)
    if not font.exactMatch():
        font = QFont("Helvetica Neue", 10)
    app.setFont(font)

    # Set up palette for consistent look
    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor("#F3F4F6"))
    palette.setColor(QPalette.ColorRole.WindowText, QColor("#111827"))
    palette.setColor(QPalette.ColorRole.Base, QColor("#FFFFFF"))
    palette.setColor(QPalette.ColorRole.Text, QColor("#374151"))
    palette.setColor(QPalette.ColorRole.Highlight, QColor("#667EEA"))
    palette.setColor(QPalette.ColorRole.HighlightedText, QColor("#FFFFFF"))
    app.setPalette(palette)

    return app


def main():
    """Main entry point."""
    # Parse command line arguments
    parser = argparse.ArgumentParser(description='Diagram Editor')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--settings', metavar='PATH', help='Settings file to use instead of the default')
    args = parser.parse_args()

    # Setup logging
    setup_logging(debug=args.debug)

    # First call decides the settings file for the whole session
    get_settings(args.settings)

    app = setup_application()

    # Imported after QApplication exists
    from views import MainWindow

    # Create and show main window
    window = MainWindow()
    window.show()

    # Run event loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()

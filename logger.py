"""Structured logging infrastructure with verbosity levels."""

import logging
import logging.handlers
from typing import Any, Dict, Optional

import colorlog

LOGGER_NAME = 'notion_markdown_migrator'
ALLOWED_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with configurable verbosity levels.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level string, overrides verbosity

    Returns:
        Configured logger instance
    """
    if level:
        level_upper = level.upper()
        if level_upper not in ALLOWED_LEVELS:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(ALLOWED_LEVELS)}"
            )
        log_level = getattr(logging, level_upper)
    elif verbosity >= 2:
        log_level = logging.DEBUG
    elif verbosity >= 1:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {e}")
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")
            logger.info(f"Log level: {logging.getLevelName(log_level)}")
    else:
        logger.info(f"Console logging only. Level: {logging.getLevelName(log_level)}")

    return logger


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log the effective importer configuration.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(LOGGER_NAME)
    importer = config.get('importer', {})

    log_section("Configuration")

    archives = importer.get('archives') or []
    logger.info(f"Archives: {len(archives)}")
    for archive in archives:
        logger.info(f"  - {archive}")
    logger.info(f"Output Directory: {importer.get('output_directory', 'Not Set')}")
    logger.info(f"Hierarchy Mode: {importer.get('hierarchy_mode', 'nested')}")
    logger.info(f"Parent Pages In Subfolders: {importer.get('parent_pages_in_subfolders', True)}")
    logger.info(f"Attachment Folder: {importer.get('default_attachment_folder', './')}")
    logger.info(f"Single Line Breaks: {importer.get('single_line_breaks', False)}")
    logger.info(f"Remove Table Of Contents: {importer.get('remove_table_of_contents', True)}")
    logger.info(f"Language Detection Minimum Length: {importer.get('language_detection_minimum_length', 25)}")
    logger.info(f"Detected Languages: {', '.join(importer.get('auto_detected_languages') or [])}")
    logger.info(f"Icon Property: {importer.get('icon_property_name') or 'Not Set'}")
    logger.info(f"Overwrite Existing: {importer.get('overwrite_existing', True)}")


def format_elapsed(seconds: float) -> str:
    """Format elapsed time in human-readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes = int(seconds // 60)
    seconds = int(seconds % 60)

    if minutes < 60:
        return f"{minutes}m {seconds}s"

    hours = minutes // 60
    minutes = minutes % 60

    return f"{hours}h {minutes}m {seconds}s"


__all__ = [
    'setup_logging',
    'log_section',
    'log_config',
    'format_elapsed',
    'LOGGER_NAME',
]

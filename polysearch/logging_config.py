"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import LOG_FILE, LOG_LEVEL


def setup_logging(
    log_file: Optional[str] = LOG_FILE,
    console_level: Optional[int] = None,
    file_level: int = logging.DEBUG,
    keep_sessions: int = 5,
) -> Optional[Path]:
    """
    Configure logging with two destinations:
    - Console: Brief logs (LOG_LEVEL, INFO by default)
    - File: Detailed logs incl. per-stage match scores (DEBUG by default) with rotation

    Rotation policy:
    - New log file per process start (timestamp-based naming)
    - Keep last `keep_sessions` log files (auto-cleanup on startup)
    - Auto-rotate when file reaches 10MB

    Args:
        log_file: Base path to log file; None disables the file handler
        console_level: Console logging level (default: from LOG_LEVEL env var)
        file_level: File logging level (DEBUG = verbose)
        keep_sessions: Number of session log files to retain

    Returns:
        Path of the session log file, or None if file logging is disabled
    """
    if console_level is None:
        console_level = getattr(logging, LOG_LEVEL, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, filter in handlers

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    # Console handler - brief output
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    session_log = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Cleanup old session logs, leaving room for the new one
        log_pattern = str(log_path.parent / f"{log_path.stem}_*.log")
        existing_logs = sorted(glob.glob(log_pattern), reverse=True)  # Newest first
        for old_log in existing_logs[max(keep_sessions - 1, 0):]:
            try:
                Path(old_log).unlink()
            except OSError:
                pass  # Another process may have removed it

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"

        file_handler = RotatingFileHandler(
            session_log,
            mode='a',
            maxBytes=10*1024*1024,  # 10MB
            backupCount=10,
            encoding='utf-8'
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    # Suppress noisy HTTP client loggers in console (but keep in file)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    logging.info(
        f"Logging configured: console={logging.getLevelName(console_level)}, "
        f"file={session_log or 'disabled'}"
    )
    return session_log

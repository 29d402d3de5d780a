# -----------------------------------------------------------------------------
# Copyright (c) 2025 Backend
# All rights reserved.
#
# Developed by:
# Author: Prabhath Chellingi
# GitHub: https://github.com/Prabhath003
# Contact: prabhathchellingi2003@gmail.com
#
# This source code is licensed under the MIT License found in the LICENSE file
# in the root directory of this source tree.
# -----------------------------------------------------------------------------

"""
Logging utility for datap connectors.

Provides modular loggers that write detailed logs into rotating files,
automatically named after the calling module.

Log files are saved under the log directory (`DATAP_LOG_DIR`, default `logs/`) with the
package structure preserved (e.g., datap/infrastructure/storage/json_storage.py ->
logs/datap/infrastructure/storage/json_storage.log) and rotate after reaching 100 MB
(up to 5 backups).

Each log entry includes:
- Timestamp
- Log level (DEBUG, INFO, etc.)
- Logger name
- Filename and line number
- Function name
- Log message
"""
import os
import logging
from logging.handlers import RotatingFileHandler
import inspect

# Directory that contains the datap package; log paths are made relative to it
_PACKAGE_PARENT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Global flag to track if we've configured the root logger
_ROOT_LOGGER_CONFIGURED = False


def _log_dir() -> str:
    return os.getenv("DATAP_LOG_DIR", "logs")


def _configure_root_logger():
    """Configure root logger to prevent library interference"""
    global _ROOT_LOGGER_CONFIGURED

    if _ROOT_LOGGER_CONFIGURED:
        return

    root_logger = logging.getLogger()

    # Remove any existing console handlers that libraries might have added
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, RotatingFileHandler):
            root_logger.removeHandler(handler)

    root_logger.setLevel(logging.WARNING)

    _ROOT_LOGGER_CONFIGURED = True


def _create_logger(logger_name: str, log_path: str = None) -> logging.Logger:
    """
    Internal helper to create and configure a logger.

    Args:
        logger_name (str): Name to assign to the logger.
        log_path (str, optional): Relative path (without extension) for the log file.
            If None, the logger name is used as a flat file name.

    Returns:
        logging.Logger: Configured logger instance.
    """
    _configure_root_logger()

    logger = logging.getLogger(logger_name)

    # Prevent propagation to root logger to avoid console output
    logger.propagate = False

    logger.setLevel(logging.DEBUG)

    log_file = os.path.join(_log_dir(), f"{log_path or logger_name}.log")
    os.makedirs(os.path.dirname(log_file), exist_ok=True)

    # Check if logger already has the correct file handler
    existing_file_handler = None
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == os.path.abspath(log_file):
            existing_file_handler = handler
            break

    if not existing_file_handler:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=100 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )

        formatter = logging.Formatter(
            fmt='%(asctime)s | %(levelname)s | %(name)s | %(filename)s:%(lineno)d | %(funcName)s() | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(formatter)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
        logger.addHandler(file_handler)

        logger.debug(f"Logger initialized for {logger_name}")
    return logger


def _package_relative(path: str) -> str:
    """Path of a source file relative to the directory holding the datap package"""
    rel_path = os.path.relpath(os.path.abspath(path), _PACKAGE_PARENT)
    if rel_path.startswith(".."):
        # Caller lives outside the package tree (scripts, tests)
        rel_path = os.path.basename(path)
    return rel_path


def get_file_logger() -> logging.Logger:
    """
    Creates a logger based on the filename of the calling file.

    Each module gets its own log file mirroring the package structure.

    Returns:
        logging.Logger: Logger named after the caller's dotted module path.
    """
    caller_path = inspect.stack()[1].filename

    try:
        rel_path_no_ext = os.path.splitext(_package_relative(caller_path))[0]
    except ValueError:
        rel_path_no_ext = os.path.splitext(os.path.basename(caller_path))[0]
    return _create_logger(rel_path_no_ext.replace(os.sep, "."), rel_path_no_ext)


def suppress_library_loggers():
    """
    Suppress verbose logging from the database driver stack.
    Call this early in your application startup.
    """
    library_loggers = [
        'pymongo',
        'pymongo.command',
        'pymongo.connection',
        'pymongo.serverSelection',
        'pymongo.topology',
        'bson',
        'dotenv',
        'asyncio',
    ]

    for logger_name in library_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
        # Ensure they don't propagate to root
        logging.getLogger(logger_name).propagate = False

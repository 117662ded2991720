"""
FILE DESCRIPTION: Foundational module for environment loading and logging.
KEY FUNCTIONS/CLASSES: CompanyFormatter, setup_logger, get_logger, logger
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the repository root before anything reads the environment
load_dotenv(Path(__file__).resolve().parents[2] / '.env')

ROOT_LOGGER_NAME = "geo"


# === LOGGING SECTION ===

class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        # Context is either passed explicitly via `extra` or derived from the child logger name
        context = getattr(record, 'context', None)
        if context is None:
            context = record.name.split(".", 1)[1] if "." in record.name else "root"
        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logger(name=ROOT_LOGGER_NAME, log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if name != ROOT_LOGGER_NAME:
        logger.propagate = True
        setup_logger(ROOT_LOGGER_NAME, log_file=log_file, level=level)
        return logger

    formatter = CompanyFormatter()

    # Console handler on stderr; stdout carries the CLI's JSON payloads
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional, root logger only)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(component: str) -> logging.Logger:
    """Child logger for a component, e.g. get_logger("frontier") -> 'geo.frontier'."""
    return setup_logger(f"{ROOT_LOGGER_NAME}.{component}")


def attach_log_file(log_file: str) -> None:
    """Adds a file handler to the root logger after startup (CLI --log-file)."""
    root = setup_logger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == str(Path(log_file).resolve()):
            return
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(CompanyFormatter())
    root.addHandler(file_handler)


# Global logger instance
logger = setup_logger()

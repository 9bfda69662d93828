import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

from ambiguity_pass.config import get_settings

LOG_FILE_NAME = 'ambiguity_pass.log'

file_handler = None
stream_handler = None


def setup_logging(log_dir: Optional[str] = None, level: Optional[str] = None) -> str:
    """Configure root logging (daily rotating file + stream). Returns the log file path."""
    global file_handler, stream_handler
    settings = get_settings()
    log_dir = os.path.abspath(log_dir or settings.LOG_DIR)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, LOG_FILE_NAME)

    root_logger = logging.getLogger()
    root_logger.setLevel((level or settings.LOG_LEVEL).upper())
    root_logger.propagate = True
    formatter = logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s')
    # Close previous handlers if they exist
    close_logging()
    # Daily rotation, keep 14 days
    file_handler = TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=14)
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)
    root_logger.debug("[BOOT] Logging system initialized and writing to %s", log_file)
    return log_file


def close_logging():
    global file_handler, stream_handler
    root_logger = logging.getLogger()
    if file_handler:
        root_logger.removeHandler(file_handler)
        file_handler.close()
        file_handler = None
    if stream_handler:
        root_logger.removeHandler(stream_handler)
        stream_handler = None

"""
Logging utilities.
"""
import sys
import time
import traceback
import logging

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def log_error(e: Exception) -> None:
    """
    Log exception to file with timestamp and full traceback.
    """
    try:
        with open("log.txt", "a", encoding="utf-8") as f:
            f.write(f"[{time.ctime()}] {type(e).__name__}: {e}\n{traceback.format_exc()}\n")
    except OSError as log_ex:
        logger.error(f"Failed to write to log file: {log_ex}")


def setup_logging(level: int = logging.INFO, log_file: str = "bot.log") -> None:
    """Console at the given level, errors also go to log_file"""
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.ERROR)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(
        level=level,
        handlers=[console_handler, file_handler]
    )

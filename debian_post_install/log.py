import datetime
import gzip
import logging
import os
import shutil

from rich.logging import RichHandler

from .config import AppConfig
from .ui import console

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def rotate_log(log_file: str, max_size: int = AppConfig.MAX_LOG_SIZE) -> None:
    """Gzip the log file aside and truncate it once it grows past max_size."""
    if not os.path.exists(log_file) or os.path.getsize(log_file) <= max_size:
        return
    ts = datetime.datetime.now().strftime("%Y%m%d%H%M%S")
    rotated = f"{log_file}.{ts}.gz"
    try:
        with open(log_file, "rb") as fin, gzip.open(rotated, "wb") as fout:
            shutil.copyfileobj(fin, fout)
        open(log_file, "w").close()
        console.print(f"Rotated log file to [path]{rotated}[/path]")
    except OSError as e:
        console.print(f"[warning]Failed to rotate log file: {e}[/warning]")


def setup_logging(
    log_file: str = AppConfig.LOG_FILE, debug: bool = False
) -> logging.Logger:
    """
    Configure the application logger.

    Everything goes to the log file. With ``debug`` the records are also
    rendered on the console through a RichHandler.

    Args:
        log_file: Path of the log file
        debug: Mirror DEBUG and above on the console

    Returns:
        The configured application logger
    """
    os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
    rotate_log(log_file)

    logger = logging.getLogger("debian_post_install")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(file_handler)

    if debug:
        logger.addHandler(
            RichHandler(rich_tracebacks=True, markup=False, console=console)
        )

    logger.info("Logging initialized: %s", log_file)
    return logger

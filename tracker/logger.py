# tracker/logger.py
import logging
import os
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = "[ %(asctime)s ] [ %(levelname)s ] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level="INFO", log_dir="logs", filename="application.log"):
    """Console output plus a log file rotated at midnight, one old day kept."""
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            os.path.join(log_dir, filename), when="midnight", backupCount=1, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Telethon is chatty at INFO
    logging.getLogger("telethon").setLevel(logging.WARNING)
    return root

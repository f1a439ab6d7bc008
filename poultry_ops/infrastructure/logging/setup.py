"""
Logging setup.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Libraries that log every HTTP request at INFO
NOISY_LOGGERS = ("urllib3", "google.auth", "cachecontrol")


def setup_logging(log_dir: str = None, level: str = None):
    """
    Configure the root logger with a rotating file and stdout.

    Args:
        log_dir: Directory of poultry_ops.log (LOG_DIR, default "logs")
        level: Level name (LOG_LEVEL, default INFO)
    """
    log_dir = log_dir or os.getenv("LOG_DIR", "logs")
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Called again on reload; replace our handlers instead of stacking them
    for handler in list(root.handlers):
        if getattr(handler, "_poultry_ops", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "poultry_ops.log"),
        maxBytes=10485760,  # 10MB
        backupCount=5
    )
    console_handler = logging.StreamHandler(sys.stdout)

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler._poultry_ops = True
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Logging initialized at {level_name} in {log_dir}")

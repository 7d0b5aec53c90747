import os
import logging

from .config import config_dir

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_path():
    return os.path.join(config_dir(), "debug.log")


def setup_logging(level="INFO", path=None):
    """Send the package's log records to a file.

    The pager owns the terminal, so nothing is ever logged to stdout/stderr.
    """
    path = path or log_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    root = logging.getLogger("tbrowser")
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.propagate = False

    # requests/urllib3 chatter only when debugging
    if root.level > logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    root.info("Logging to %s (level %s)", path, logging.getLevelName(root.level))
    return handler

"""Logger factory shared by the engine and the API layer."""
import logging
import sys
from pathlib import Path

from .config import settings

_FORMAT = "%(asctime)s | %(levelname)7s | %(name)s | %(message)s"


def get_logger(name: str = "netcanvas", level: str | int | None = None,
               logfile: Path | str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger  # already configured

    logger.setLevel(level or settings.log_level)
    fmt = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    logfile = logfile or settings.log_file
    if logfile:
        Path(logfile).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger

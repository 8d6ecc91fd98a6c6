from __future__ import annotations

import logging.config
from enum import IntEnum
from pathlib import Path

import yaml

LOGGING_CONFIG_PATH = Path("logging.yaml")


def configure_logging(config_path: Path = LOGGING_CONFIG_PATH) -> None:
    with open(config_path) as f:
        config = yaml.safe_load(f.read())
        logging.config.dictConfig(config)


class Ansi(IntEnum):
    # Default colours
    BLACK = 30
    RED = 31
    GREEN = 32
    YELLOW = 33
    BLUE = 34
    MAGENTA = 35
    CYAN = 36
    WHITE = 37

    # Light colours
    GRAY = 90
    LRED = 91
    LGREEN = 92
    LYELLOW = 93
    LBLUE = 94
    LMAGENTA = 95
    LCYAN = 96
    LWHITE = 97

    RESET = 0

    def __repr__(self) -> str:
        return f"\x1b[{self.value}m"


ROOT_LOGGER = logging.getLogger()


def log(msg: str, col: Ansi | None = None) -> None:
    """Log a string, in a specified ansi colour.

    The colour also picks the level it is logged at;
    yellow is a warning, and light red is an error.
    """

    if col is Ansi.LYELLOW:
        log_level = logging.WARNING
    elif col is Ansi.LRED:
        log_level = logging.ERROR
    else:
        if col is None:
            col = Ansi.GRAY
        log_level = logging.INFO

    ROOT_LOGGER.log(log_level, f"{col!r}{msg}{Ansi.RESET!r}")


TIME_ORDER_SUFFIXES = ["nsec", "μsec", "msec", "sec"]


def magnitude_fmt_time(nanosec: int | float) -> str:
    suffix = None
    for suffix in TIME_ORDER_SUFFIXES:
        if nanosec < 1000:
            break
        nanosec /= 1000
    return f"{nanosec:.2f} {suffix}"

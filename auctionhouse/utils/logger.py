"""
Logging for AuctionHouse.

Each subsystem logs through its own child of the ``auctionhouse`` logger.
The console copy is colored, and a plain-text file copy is optional.
Levels can be tuned per subsystem, so chain frame traces can be silenced
while auction activity stays visible:

    setup_logging(logging.DEBUG, subsystem_levels={"chain": logging.WARNING})
"""

import logging
import sys
from pathlib import Path
from typing import Mapping, Optional

import colorlog

ROOT_LOGGER = "auctionhouse"

# Subsystems that own a logger
SUBSYSTEMS = ("chain", "auction", "factory", "mocks", "cli")

LOG_FILE = "auctionhouse.log"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
COLOR_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _subsystem_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def _console_handler() -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(
        colorlog.ColoredFormatter(COLOR_FORMAT, datefmt=DATE_FORMAT, log_colors=LEVEL_COLORS)
    )
    return handler


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(exist_ok=True, parents=True)
    handler = logging.FileHandler(log_dir / LOG_FILE)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


class AuctionHouseLogger:
    """Owns the handlers and levels of the auctionhouse logger tree"""

    _initialized = False
    _log_file: Optional[Path] = None

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
        subsystem_levels: Optional[Mapping[str, int]] = None,
    ):
        """
        Attach handlers and set levels. Ignored until reset() once done.

        Handlers pass every record and the loggers do the filtering, so a
        subsystem may be more verbose than the rest of the tree.

        Args:
            level: Level for every subsystem without an override
            log_dir: Directory for the log file. If None, uses ./logs
            log_to_file: Whether to also write a plain-text log file
            subsystem_levels: Per-subsystem overrides, e.g. {"chain": WARNING}

        Raises:
            ValueError: for a subsystem name not in SUBSYSTEMS
        """
        if cls._initialized:
            return

        overrides = dict(subsystem_levels or {})
        unknown = sorted(set(overrides) - set(SUBSYSTEMS))
        if unknown:
            raise ValueError(f"Unknown logging subsystems: {', '.join(unknown)}")

        root = logging.getLogger(ROOT_LOGGER)
        root.setLevel(level)
        root.handlers.clear()
        root.addHandler(_console_handler())

        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            root.addHandler(_file_handler(directory))
            cls._log_file = directory / LOG_FILE

        for name in SUBSYSTEMS:
            _subsystem_logger(name).setLevel(overrides.get(name, logging.NOTSET))

        cls._initialized = True

    @classmethod
    def reset(cls):
        """Close handlers and clear overrides so setup() runs again."""
        root = logging.getLogger(ROOT_LOGGER)
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        for name in SUBSYSTEMS:
            _subsystem_logger(name).setLevel(logging.NOTSET)
        cls._initialized = False
        cls._log_file = None

    @classmethod
    def log_file(cls) -> Optional[Path]:
        """Path of the active log file, if file logging is on."""
        return cls._log_file

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Logger for a subsystem, setting up defaults on first use."""
        if not cls._initialized:
            cls.setup()
        return _subsystem_logger(name)


# Convenience functions
def get_logger(name: str) -> logging.Logger:
    return AuctionHouseLogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
    subsystem_levels: Optional[Mapping[str, int]] = None,
):
    """Setup logging configuration"""
    AuctionHouseLogger.setup(
        level=level,
        log_dir=log_dir,
        log_to_file=log_to_file,
        subsystem_levels=subsystem_levels,
    )

"""
CueBracket Configuration

Centralized settings, paths, and constants for the bracket engine.
"""

import logging
import logging.handlers
import os
from pathlib import Path
from dataclasses import dataclass
import appdirs


# Application info
APP_NAME = "CueBracket"
APP_AUTHOR = "CueSportsAfrica"
APP_VERSION = "1.0.0"


@dataclass(frozen=True)
class Paths:
    """Application paths."""
    # Data directory (stores database)
    data_dir: Path = Path(appdirs.user_data_dir(APP_NAME, APP_AUTHOR))

    # Config directory (stores user preferences)
    config_dir: Path = Path(appdirs.user_config_dir(APP_NAME, APP_AUTHOR))

    # Cache directory
    cache_dir: Path = Path(appdirs.user_cache_dir(APP_NAME, APP_AUTHOR))

    # Log directory
    log_dir: Path = Path(appdirs.user_log_dir(APP_NAME, APP_AUTHOR))

    @property
    def database(self) -> Path:
        return self.data_dir / "cuebracket.db"

    @property
    def log_file(self) -> Path:
        return self.log_dir / "cuebracket.log"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        for dir_path in [self.data_dir, self.config_dir, self.cache_dir, self.log_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class BracketSettings:
    """Bracket generation settings."""
    # "fair" pairs adjacent seeds (1v2, 3v4); "standard" pairs 1v16, 2v15
    default_seeding_mode: str = "fair"

    # Smallest field a single elimination bracket accepts
    min_participants: int = 2

    # Rating used when a participant has no profile rating
    default_rating: int = 1000

    # Sort value for participants without a seed when breaking ties
    unseeded_sort_value: int = 999

    # Days a generated match stays open before it expires
    match_expiry_days: int = 3

    # Play-off between the semi-final losers
    third_place_match: bool = True

    # Frames needed to win a match when the tournament doesn't say
    default_race_to: int = 5


@dataclass(frozen=True)
class LogSettings:
    """Logging settings."""
    level: str = os.environ.get("CUEBRACKET_LOG_LEVEL", "INFO")
    format: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

    # Rotating file handler limits
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 3


# Singleton instances
PATHS = Paths()
BRACKET_SETTINGS = BracketSettings()
LOG_SETTINGS = LogSettings()

DATABASE_URL = os.environ.get("CUEBRACKET_DATABASE_URL", f"sqlite:///{PATHS.database}")


CONSOLE_HANDLER_NAME = "cuebracket.console"
FILE_HANDLER_NAME = "cuebracket.file"


def configure_logging(to_file: bool = True) -> None:
    """
    Configure root logging for the bracket engine.

    Safe to call more than once: handlers installed by an earlier call are
    left in place rather than added again.

    Args:
        to_file: Also write to a rotating log file in the log directory
    """
    root = logging.getLogger()
    root.setLevel(LOG_SETTINGS.level.upper())

    formatter = logging.Formatter(LOG_SETTINGS.format)
    installed = {h.get_name() for h in root.handlers}

    if CONSOLE_HANDLER_NAME not in installed:
        console = logging.StreamHandler()
        console.set_name(CONSOLE_HANDLER_NAME)
        console.setFormatter(formatter)
        root.addHandler(console)

    if to_file and FILE_HANDLER_NAME not in installed:
        PATHS.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            PATHS.log_file,
            maxBytes=LOG_SETTINGS.max_bytes,
            backupCount=LOG_SETTINGS.backup_count,
        )
        file_handler.set_name(FILE_HANDLER_NAME)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def init_config() -> None:
    """Initialize configuration and create required directories."""
    PATHS.ensure_directories()

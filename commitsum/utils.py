import logging
import os
from datetime import date
from logging.handlers import RotatingFileHandler
from pathlib import Path

from appdirs import AppDirs

from commitsum.constants import (
    APP_AUTHOR,
    APP_NAME,
    CACHE_DIR_NAME,
    CONFIG_FILE_NAME,
    LOG_FILE_TEMPLATE,
    OUTPUT_ROOT_DIR,
)

# Initialize AppDirs
dirs = AppDirs(APP_NAME, APP_AUTHOR)
CONFIG_DIR = Path(dirs.user_config_dir)
CONFIG_FILE = CONFIG_DIR / CONFIG_FILE_NAME
CACHE_DIR = CONFIG_DIR / CACHE_DIR_NAME
LOG_DIR = Path(dirs.user_log_dir)


def setup_logging(debug: bool = False, log_dir: Path = LOG_DIR) -> logging.Logger:
    """
    Configures application-wide logging with rotation and UTF-8 support.
    Returns the application logger, which callers hand to the components.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_TEMPLATE.format(date=date.today().isoformat())
    log_handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=1, encoding="utf-8"  # 5 MB
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[log_handler],
    )
    return logging.getLogger("CommitSum")


def debug_requested() -> bool:
    """The DEBUG environment variable turns on verbose logging when set to anything."""
    return bool(os.environ.get("DEBUG"))


def resolve_output_path(filename: str, root: str | None = None) -> Path:
    """Standardizes where export files are saved. The directory is created on write."""
    return Path(root or os.getcwd()) / OUTPUT_ROOT_DIR / filename

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from commitsum.schemas import ExportFormat
from commitsum.utils import CONFIG_FILE

logger = logging.getLogger(__name__)


class AppSettings(BaseSettings):
    """
    User preferences read from config.json.
    COMMITSUM_* environment variables override individual fields.
    """

    default_date_range: Literal["today", "yesterday", "week", "month", "custom"] = "today"
    repo_filter: str = ""
    output_format: ExportFormat = ExportFormat.TEXT
    custom_template: str = ""
    auto_copy: bool = False
    show_stats: bool = True

    model_config = SettingsConfigDict(env_prefix="COMMITSUM_", extra="ignore")


def load_settings(path: Path = CONFIG_FILE) -> AppSettings:
    """
    Loads settings from the JSON config file.
    A missing, unreadable, malformed or invalid file silently yields the defaults.
    """
    data = {}
    try:
        if path.is_file():
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        data = {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        data = {}

    try:
        return AppSettings(**data)
    except ValidationError as e:
        logger.warning(f"Invalid configuration, using defaults: {e}")
        # Built-in defaults only; the offending value may come from the environment.
        return AppSettings.model_construct()

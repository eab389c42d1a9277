"""Configuration management for Dzisiaj."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DZISIAJ_HOME = Path(os.environ.get("DZISIAJ_HOME", Path.home() / "dzisiaj"))
CONFIG_FILE = DZISIAJ_HOME / "config" / "dzisiaj.conf"

SORT_ORDERS = ("priority", "due_date", "due_date_alphabetical", "alphabetical")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


@dataclass
class Config:
    """Dzisiaj configuration."""

    supabase_url: str = ""
    supabase_key: str = ""
    user_email: str = ""
    timezone: str = "Europe/Warsaw"
    planner_first_hour: int = 6
    planner_last_hour: int = 23
    task_sort_order: str = "priority"
    show_completed: bool = True
    refresh_seconds: int = 30
    notifications: dict = field(default_factory=dict)

    def require_store(self) -> None:
        """Raise if the backing store is not configured."""
        if not self.supabase_url or not self.supabase_key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_KEY must be set in dzisiaj.conf or the environment"
            )
        if not self.user_email:
            raise ConfigurationError("USER_EMAIL not configured")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_hours(value: str) -> tuple[int, int]:
    """Parse a planner range like '06-23' or '06:00-23:00'."""
    first, _, last = value.partition("-")
    first_hour = int(first.split(":")[0])
    last_hour = int(last.split(":")[0])
    if not 0 <= first_hour <= last_hour <= 23:
        raise ValueError(f"invalid planner range: {value}")
    return first_hour, last_hour


def _strip_value(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # JSON values may legitimately contain '#'
    if value.startswith("{"):
        return value
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from dzisiaj.conf, then apply environment overrides."""
    config = Config()
    config_file = path or CONFIG_FILE

    if config_file.exists():
        for line in config_file.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _strip_value(value.strip())

            match key:
                case "supabase_url":
                    config.supabase_url = value.rstrip("/")
                case "supabase_key":
                    config.supabase_key = value
                case "user_email":
                    config.user_email = value
                case "timezone":
                    config.timezone = value
                case "planner_hours":
                    try:
                        config.planner_first_hour, config.planner_last_hour = _parse_hours(value)
                    except ValueError:
                        logger.warning(f"Invalid PLANNER_HOURS: {value}")
                case "task_sort_order":
                    if value in SORT_ORDERS:
                        config.task_sort_order = value
                    else:
                        logger.warning(f"Unknown TASK_SORT_ORDER: {value}")
                case "show_completed":
                    config.show_completed = _parse_bool(value)
                case "refresh_seconds":
                    try:
                        config.refresh_seconds = int(value)
                    except ValueError:
                        logger.warning(f"Invalid REFRESH_SECONDS: {value}")
                case "notifications":
                    try:
                        config.notifications = json.loads(value)
                    except json.JSONDecodeError as e:
                        logger.warning(f"Failed to parse NOTIFICATIONS JSON: {e}")

    config.supabase_url = os.environ.get("SUPABASE_URL", config.supabase_url).rstrip("/")
    config.supabase_key = os.environ.get("SUPABASE_KEY", config.supabase_key)
    config.user_email = os.environ.get("USER_EMAIL", config.user_email)

    return config

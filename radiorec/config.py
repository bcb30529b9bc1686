"""
Configuration management for Radio Recorder.

This module implements a two-tier configuration system:
1. Static settings from environment variables (.env file)
2. Dynamic settings from user_config.json (changeable via Telegram)

Static settings include the broadcast zone and day cutover, which every
guide and recording computation depends on, so they cannot change at
runtime. Dynamic settings persist across restarts.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from .timemodel import BroadcastTimeModel, DEFAULT_DAY_START_HOUR, DEFAULT_ZONE

logger = logging.getLogger(__name__)

# Base paths
BASE_DIR = Path(__file__).parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"
USER_CONFIG_FILENAME = "user_config.json"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}, using default {default}")
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}, using default {default}")
        return default


@dataclass
class DynamicConfig:
    """
    Dynamic configuration that can be changed via Telegram.

    These settings are persisted to user_config.json and can be modified
    at runtime through bot commands.
    """
    save_directory: str = str(Path.home() / "Downloads")
    notifications_enabled: bool = True
    default_station_id: str = ""

    def to_dict(self) -> dict:
        """Convert config to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "DynamicConfig":
        """Create config from dictionary."""
        defaults = cls()
        return cls(
            save_directory=data.get("save_directory", defaults.save_directory),
            notifications_enabled=data.get("notifications_enabled", True),
            default_station_id=data.get("default_station_id", ""),
        )


class Config:
    """
    Main configuration class combining static and dynamic settings.

    Static settings are loaded from environment variables once at startup.
    Dynamic settings can be modified and are auto-saved to user_config.json.

    Attributes:
        timezone: IANA zone all broadcast times are pinned to
        day_start_hour: Local hour at which a broadcast day begins
        tick_interval: Seconds between recording progress ticks
        guide_days: Number of past broadcast days offered for browsing
        guide_path: JSON program guide file
        telegram_bot_token: Telegram bot API token
        telegram_chat_id: Chat ID for notifications
        capture_start_delay: Simulated capture start latency in seconds
        capture_stop_delay: Simulated capture stop latency in seconds
        min_free_space_mb: Free space required before a recording starts
        data_dir: Directory holding user_config.json and the guide
        dynamic: Dynamic configuration object
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize configuration from environment and user config file.

        Raises:
            ValueError: If the broadcast zone or day start hour is invalid
        """
        self.data_dir: Path = Path(
            data_dir or os.getenv("RADIOREC_DATA_DIR", "") or DEFAULT_DATA_DIR
        )
        self.user_config_path: Path = self.data_dir / USER_CONFIG_FILENAME

        # Static settings from environment
        self.timezone: str = os.getenv("BROADCAST_TZ", DEFAULT_ZONE)
        self.day_start_hour: int = _env_int("BROADCAST_DAY_START_HOUR", DEFAULT_DAY_START_HOUR)
        self.tick_interval: float = _env_float("TICK_INTERVAL", 1.0)
        self.guide_days: int = _env_int("GUIDE_DAYS", 7)
        self.guide_path: Path = Path(
            os.getenv("GUIDE_PATH", "") or self.data_dir / "guide.json"
        )
        self.telegram_bot_token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
        self.telegram_chat_id: str = os.getenv("TELEGRAM_CHAT_ID", "")
        self.capture_start_delay: float = _env_float("CAPTURE_START_DELAY", 1.0)
        self.capture_stop_delay: float = _env_float("CAPTURE_STOP_DELAY", 0.5)
        self.min_free_space_mb: int = _env_int("MIN_FREE_SPACE_MB", 864)

        if self.tick_interval <= 0:
            logger.warning("TICK_INTERVAL must be positive, using 1.0")
            self.tick_interval = 1.0
        if self.guide_days < 1:
            logger.warning("GUIDE_DAYS must be at least 1, using 7")
            self.guide_days = 7

        # Fails fast on a bad zone or cutover hour
        self.time_model: BroadcastTimeModel = BroadcastTimeModel.from_zone_name(
            self.timezone, self.day_start_hour
        )

        # Ensure data directory exists
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # Load dynamic settings
        self.dynamic = self._load_dynamic_config()

        logger.info("Configuration loaded successfully")

    def _load_dynamic_config(self) -> DynamicConfig:
        """
        Load dynamic configuration from user_config.json.

        If the file doesn't exist or is invalid, writes and returns the
        default config.

        Returns:
            DynamicConfig object with loaded or default settings
        """
        if self.user_config_path.exists():
            try:
                with open(self.user_config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                logger.info(f"Loaded dynamic config from {self.user_config_path}")
                return DynamicConfig.from_dict(data)
            except (json.JSONDecodeError, AttributeError) as e:
                logger.warning(f"Invalid user config file, using defaults: {e}")

        config = DynamicConfig()
        self._save_dynamic_config(config)
        return config

    def _save_dynamic_config(self, config: Optional[DynamicConfig] = None) -> None:
        """
        Save dynamic configuration to user_config.json.

        Args:
            config: Config to save, defaults to self.dynamic
        """
        config = config or self.dynamic
        try:
            with open(self.user_config_path, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
            logger.info(f"Saved dynamic config to {self.user_config_path}")
        except IOError as e:
            logger.error(f"Failed to save config: {e}")

    @property
    def save_directory(self) -> Path:
        return Path(self.dynamic.save_directory).expanduser()

    def set_save_directory(self, path: str) -> Path:
        """
        Set the directory recordings are saved to.

        Args:
            path: Directory path, created if missing

        Returns:
            The resolved directory

        Raises:
            ValueError: If the directory cannot be created
        """
        directory = Path(path).expanduser()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ValueError(f"Cannot use save directory '{path}': {e}") from e

        self.dynamic.save_directory = str(directory)
        self._save_dynamic_config()
        logger.info(f"Save directory set to: {directory}")
        return directory

    def set_notifications_enabled(self, enabled: bool) -> None:
        """
        Enable or disable Telegram notifications.

        Args:
            enabled: Whether to send notifications
        """
        self.dynamic.notifications_enabled = enabled
        self._save_dynamic_config()
        logger.info(f"Notifications enabled: {enabled}")

    def set_default_station(self, station_id: str) -> None:
        """Set the station used when a command omits one."""
        self.dynamic.default_station_id = station_id
        self._save_dynamic_config()
        logger.info(f"Default station set to: {station_id}")

    def get_config_summary(self) -> str:
        """
        Get a human-readable summary of current configuration.

        Returns:
            Formatted string with current settings
        """
        return f"""📻 Radio Recorder Configuration

Time zone: {self.timezone}
Broadcast day starts: {self.day_start_hour:02d}:00
Guide: {self.guide_path} ({self.guide_days} days)

Settings:
  - Save directory: {self.save_directory}
  - Default station: {self.dynamic.default_station_id or '(none)'}
  - Notifications: {'✅' if self.dynamic.notifications_enabled else '❌'}
  - Minimum free space: {self.min_free_space_mb} MB"""


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Creates the instance on first call (lazy initialization).

    Returns:
        The global Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config

"""Configuration system for sysmon."""

from dataclasses import dataclass, field
from pathlib import Path

import tomlkit

DEFAULT_INTERVAL = 2
LOG_LEVELS = ("debug", "info", "warning", "error")


def parse_interval(raw: str | None, default: int = DEFAULT_INTERVAL) -> int:
    """Parse a refresh interval in whole seconds, falling back to ``default``."""
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 1 else default


@dataclass
class RefreshConfig:
    """Refresh loop configuration."""

    interval: int = DEFAULT_INTERVAL  # Seconds between samples
    tick_seconds: float = 0.1  # Loop period; bounds sysmon's own CPU use


@dataclass
class KillConfig:
    """Kill workflow configuration."""

    ack_seconds: float = 0.7  # How long the "signal sent" notice stays up


@dataclass
class LoggingConfig:
    """Log file configuration."""

    level: str = "info"
    max_bytes: int = 1024 * 1024
    backup_count: int = 2


@dataclass
class Config:
    """Main configuration container."""

    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    kill: KillConfig = field(default_factory=KillConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "sysmon"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "sysmon"

    @property
    def log_path(self) -> Path:
        return self.state_dir / "sysmon.log"

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file can't be parsed or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            refresh=_load_refresh_config(data.get("refresh", {})),
            kill=_load_kill_config(data.get("kill", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def _load_refresh_config(data: dict) -> RefreshConfig:
    defaults = RefreshConfig()
    interval = data.get("interval", defaults.interval)
    tick_seconds = data.get("tick_seconds", defaults.tick_seconds)

    if not isinstance(interval, int) or interval < 1:
        raise ValueError(f"refresh.interval must be an integer >= 1, got {interval!r}")
    if not isinstance(tick_seconds, (int, float)) or tick_seconds <= 0:
        raise ValueError(f"refresh.tick_seconds must be > 0, got {tick_seconds}")

    return RefreshConfig(interval=int(interval), tick_seconds=float(tick_seconds))


def _load_kill_config(data: dict) -> KillConfig:
    defaults = KillConfig()
    ack_seconds = data.get("ack_seconds", defaults.ack_seconds)
    if not isinstance(ack_seconds, (int, float)) or ack_seconds < 0:
        raise ValueError(f"kill.ack_seconds must be >= 0, got {ack_seconds}")
    return KillConfig(ack_seconds=float(ack_seconds))


def _load_logging_config(data: dict) -> LoggingConfig:
    defaults = LoggingConfig()
    level = str(data.get("level", defaults.level)).lower()
    if level not in LOG_LEVELS:
        raise ValueError(f"Invalid logging.level: {level!r}. Must be one of {LOG_LEVELS}")
    return LoggingConfig(
        level=level,
        max_bytes=int(data.get("max_bytes", defaults.max_bytes)),
        backup_count=int(data.get("backup_count", defaults.backup_count)),
    )

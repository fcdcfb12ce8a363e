"""Configuration system for pyiotop."""

import logging
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import psutil
import tomlkit

DEFAULT_PROCFS_ROOT: str = psutil.PROCFS_PATH
MIN_SAMPLE_INTERVAL = 1.0  # Seconds; no sub-second sampling


@dataclass
class SamplingConfig:
    """Process sampling configuration."""

    interval: float = 1.0  # Seconds between refreshes
    procfs_root: str = DEFAULT_PROCFS_ROOT


@dataclass
class LoggingConfig:
    """Log file configuration."""

    level: str = "INFO"
    log_max_bytes: int = 1024 * 1024  # Max log file size (1MB)
    log_backup_count: int = 2  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "pyiotop"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "pyiotop"

    @property
    def log_path(self) -> Path:
        """Log file path."""
        return self.state_dir / "pyiotop.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("sampling", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file cannot be parsed or holds invalid values.
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
            sampling=_load_sampling_config(data.get("sampling", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def _require_int(name: str, value: object) -> int:
    # bool is an int subclass; TOML true/false is not a size
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _load_sampling_config(data: dict) -> SamplingConfig:
    """Load sampling config from TOML data, using dataclass defaults for missing fields."""
    defaults = SamplingConfig()

    interval = data.get("interval", defaults.interval)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)):
        raise ValueError(f"interval must be a number, got {interval!r}")
    interval = float(interval)
    if interval < MIN_SAMPLE_INTERVAL:
        raise ValueError(f"interval must be >= {MIN_SAMPLE_INTERVAL}, got {interval}")

    procfs_root = data.get("procfs_root", defaults.procfs_root)
    if not isinstance(procfs_root, str):
        raise ValueError(f"procfs_root must be a string, got {procfs_root!r}")
    procfs_root = str(procfs_root)
    if not procfs_root:
        raise ValueError("procfs_root must not be empty")

    return SamplingConfig(interval=interval, procfs_root=procfs_root)


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load logging config from TOML data, using dataclass defaults for missing fields."""
    defaults = LoggingConfig()

    level = data.get("level", defaults.level)
    if not isinstance(level, str):
        raise ValueError(f"level must be a string, got {level!r}")
    level = str(level).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level: {level!r}")

    log_max_bytes = _require_int("log_max_bytes", data.get("log_max_bytes", defaults.log_max_bytes))
    log_backup_count = _require_int(
        "log_backup_count", data.get("log_backup_count", defaults.log_backup_count)
    )
    if log_max_bytes < 1:
        raise ValueError(f"log_max_bytes must be >= 1, got {log_max_bytes}")
    if log_backup_count < 0:
        raise ValueError(f"log_backup_count must be >= 0, got {log_backup_count}")

    return LoggingConfig(
        level=level,
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
    )

"""Configuration management for Cadence."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.recurrence import DEFAULT_LOOKAHEAD_DAYS

logger = logging.getLogger(__name__)

CADENCE_HOME = Path(os.environ.get("CADENCE_HOME", Path.home() / "cadence"))
CONFIG_FILE = CADENCE_HOME / "config" / "cadence.conf"
DATA_DIR = CADENCE_HOME / "data"


@dataclass
class Config:
    """Cadence configuration."""

    store_file: Path = field(default_factory=lambda: DATA_DIR / "tasks.json")
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS
    extension_window_days: int = DEFAULT_LOOKAHEAD_DAYS
    # Daily background refresh, HH:MM UTC
    refresh_time: str = "03:00"
    log_level: str = "INFO"


def _parse_days(key: str, value: str) -> int | None:
    try:
        days = int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {key.upper()}: {value!r}")
        return None
    if days < 0:
        logger.warning(f"Ignoring negative {key.upper()}: {days}")
        return None
    return days


def load_config(config_file: Path | None = None) -> Config:
    """Load configuration from cadence.conf file."""
    config = Config()
    config_file = config_file or CONFIG_FILE

    if not config_file.exists():
        return config

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value[:1] in ("'", '"'):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            value = value.split("#")[0].strip()

        match key:
            case "store_file":
                config.store_file = Path(value).expanduser()
            case "lookahead_days":
                days = _parse_days(key, value)
                if days is not None:
                    config.lookahead_days = days
            case "extension_window_days":
                days = _parse_days(key, value)
                if days is not None:
                    config.extension_window_days = days
            case "refresh_time":
                config.refresh_time = value
            case "log_level":
                config.log_level = value.upper()
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config

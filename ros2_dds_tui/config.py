"""Settings and YAML configuration loading for the DDS dashboard."""

import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

PACKAGE_NAME = "ros2_dds_tui"

# UI refresh
TICK_MS = 250
TICK_MIN_MS = 100
TICK_MAX_MS = 2000
TICK_STEP_MS = 50

# Rows moved by PageUp/PageDown
PAGE_SIZE = 30

# Discovery
DISCOVERY_INTERVAL = 1.0
ABNORMALITY_LIMIT = 1000

# Transient status bar messages (seconds)
STATUS_MSG_TIMEOUT = 3.0

DEFAULTS: Dict[str, Any] = {
    "settings": {
        "tick_ms": TICK_MS,
        "tick_min_ms": TICK_MIN_MS,
        "tick_max_ms": TICK_MAX_MS,
        "tick_step_ms": TICK_STEP_MS,
        "page_size": PAGE_SIZE,
        "discovery_interval": DISCOVERY_INTERVAL,
        "abnormality_limit": ABNORMALITY_LIMIT,
    },
}


# =============================================================================
# Configuration Loading
# =============================================================================


def default_config_path() -> str:
    """Return config/default.yaml in the package share directory, or ""."""
    try:
        from ament_index_python.packages import get_package_share_directory

        pkg_share = get_package_share_directory(PACKAGE_NAME)
        return os.path.join(pkg_share, "config", "default.yaml")
    except Exception as e:
        logger.debug(f"No package share directory for {PACKAGE_NAME}: {e}")
        return ""


# Type each setting is coerced to
SETTING_TYPES = {
    "tick_ms": int,
    "tick_min_ms": int,
    "tick_max_ms": int,
    "tick_step_ms": int,
    "page_size": int,
    "discovery_interval": float,
    "abnormality_limit": int,
}


def _coerce(key: str, value: Any, kind: type):
    if value is None or isinstance(value, bool):
        raise ValueError(f"{key} must be {kind.__name__}, got {value!r}")
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key} must be a whole number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key} must be {kind.__name__}, got {value!r}") from e


def validate_settings(settings: Dict[str, Any]) -> None:
    """Coerce settings to their types in place; raise ValueError for unusable ones."""
    for key, kind in SETTING_TYPES.items():
        settings[key] = _coerce(key, settings.get(key), kind)
        if settings[key] <= 0:
            raise ValueError(f"{key} must be positive, got {settings[key]}")
    if settings["tick_min_ms"] > settings["tick_max_ms"]:
        raise ValueError(
            f"tick_min_ms ({settings['tick_min_ms']}) is above "
            f"tick_max_ms ({settings['tick_max_ms']})"
        )
    if not settings["tick_min_ms"] <= settings["tick_ms"] <= settings["tick_max_ms"]:
        raise ValueError(
            f"tick_ms ({settings['tick_ms']}) is outside "
            f"[{settings['tick_min_ms']}, {settings['tick_max_ms']}]"
        )


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from a YAML file, merged over the defaults.

    When ``config_path`` is None the package's config/default.yaml is used.
    Falls back to defaults if the file is missing or unreadable.
    """
    config = copy.deepcopy(DEFAULTS)
    path = config_path if config_path is not None else default_config_path()

    if path:
        try:
            with open(path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            for key, value in loaded.items():
                if key == "settings" and isinstance(value, dict):
                    # Merge settings key by key so partial files keep defaults
                    config["settings"].update(value)
                else:
                    config[key] = value
        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.warning(f"Failed to load config file '{path}', using defaults: {e}")

    validate_settings(config["settings"])
    return config

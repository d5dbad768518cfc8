"""Provides functions for loading configuration settings and building SdkConfig.

Supports loading from a YAML file (~/.linkpulse/config.yaml), a .env file
and environment variables. The loaded values only seed an explicit
``SdkConfig`` object; nothing in the SDK reads process-wide settings after
construction.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".linkpulse"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_STATE_DIR = DEFAULT_CONFIG_DIR / "state"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "LINKPULSE_"

DEFAULT_BASE_URL = "https://api.linkpulse.io"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 500
DEFAULT_MAX_JITTER_MS = 250
DEFAULT_BATCH_SIZE = 10
DEFAULT_FLUSH_INTERVAL_MS = 5000
DEFAULT_MAX_QUEUE_SIZE = 1000

_LOCAL_DEV_PREFIXES = (
    "http://localhost",
    "http://127.0.0.1",
    "http://10.",
    "http://192.168.",
)
_PRIVATE_172_RE = re.compile(r"^http://172\.(1[6-9]|2\d|3[01])\.")

# --- Loaded file/.env values ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


class ConfigurationError(ValueError):
    """Raised when an SdkConfig is constructed with unusable values."""


def is_local_development_url(url: str) -> bool:
    """True for plain-http URLs pointing at loopback or private networks."""
    return url.startswith(_LOCAL_DEV_PREFIXES) or bool(_PRIVATE_172_RE.match(url))


@dataclass
class SdkConfig:
    """Explicit configuration object owned by the embedding application.

    Constructed once and passed by reference to every subsystem.
    """
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    debug: bool = False
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    max_jitter_ms: int = DEFAULT_MAX_JITTER_MS
    batch_size: int = DEFAULT_BATCH_SIZE
    flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS
    max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE
    state_dir: Path = field(default_factory=lambda: DEFAULT_STATE_DIR)
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("API key must not be blank")
        if not self.base_url or not self.base_url.strip():
            raise ConfigurationError("Base URL must not be blank")
        if not self.base_url.startswith("https://") and not is_local_development_url(self.base_url):
            raise ConfigurationError(
                "Base URL must use HTTPS to protect your API key. Local development URLs "
                "(localhost, 127.0.0.1, 10.x, 172.16-31.x, 192.168.x) are exempt."
            )
        if self.batch_size < 1:
            raise ConfigurationError("batch_size must be at least 1")
        if self.max_queue_size < 1:
            raise ConfigurationError("max_queue_size must be at least 1")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must not be negative")
        self.state_dir = Path(self.state_dir)


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from a YAML file and a .env file.

    Priority order (highest to lowest):
    1. Environment Variables (LINKPULSE_*)
    2. .env file
    3. YAML configuration file
    4. SdkConfig defaults

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded file values so the next load re-reads them."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ('retry.max_retries')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def _coerce(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if set)
    2. Environment variable (LINKPULSE_ + key upper-cased, dots as underscores)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key, e.g. 'api_key' or 'retry.max_retries'
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = ENV_PREFIX + key.upper().replace('.', '_')
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def build_sdk_config(**overrides: Any) -> SdkConfig:
    """Builds an SdkConfig from the layered sources.

    Keyword overrides (e.g. from CLI flags) win over every source; None
    values are ignored so unset flags fall through.

    Raises:
        ConfigurationError: If the resulting values are invalid.
    """
    load_configuration()
    values: Dict[str, Any] = {
        "api_key": get_config("api_key", ""),
        "base_url": get_config("base_url", DEFAULT_BASE_URL),
        "debug": bool(get_config("debug", False)),
        "timeout_seconds": float(get_config("http.timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        "max_retries": int(get_config("retry.max_retries", DEFAULT_MAX_RETRIES)),
        "base_delay_ms": int(get_config("retry.base_delay_ms", DEFAULT_BASE_DELAY_MS)),
        "max_jitter_ms": int(get_config("retry.max_jitter_ms", DEFAULT_MAX_JITTER_MS)),
        "batch_size": int(get_config("analytics.batch_size", DEFAULT_BATCH_SIZE)),
        "flush_interval_ms": int(get_config("analytics.flush_interval_ms", DEFAULT_FLUSH_INTERVAL_MS)),
        "max_queue_size": int(get_config("analytics.max_queue_size", DEFAULT_MAX_QUEUE_SIZE)),
        "state_dir": Path(str(get_config("state_dir", DEFAULT_STATE_DIR))).expanduser(),
        "user_id": get_config("user_id"),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    if values["user_id"] is not None:
        values["user_id"] = str(values["user_id"])
    values["api_key"] = str(values["api_key"] or "")
    return SdkConfig(**values)


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")

"""
Configuration loading.

Loads settings from a YAML file and environment variables with precedence:
env > config file > defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Default config file locations (checked in order)
DEFAULT_CONFIG_PATHS = [
    Path("~/.config/mail_triage/config.yaml").expanduser(),
    Path("~/.mail_triage.yaml").expanduser(),
    Path("mail_triage.yaml"),
]

ENV_PREFIX = "MAIL_TRIAGE_"


@dataclass
class GmailSourceConfig:
    """Settings for the Gmail mail source."""
    query: str = "in:inbox"
    max_results: int = 50
    batch_size: int = 5
    batch_delay_seconds: float = 1.0
    client_secrets_file: str = "~/.config/mail_triage/client_secret.json"
    token_file: str = "~/.config/mail_triage/token.json"
    scopes: List[str] = field(default_factory=lambda: ["https://www.googleapis.com/auth/gmail.readonly"])


@dataclass
class Config:
    """
    Main configuration container.

    Attributes:
        store_path: JSON file holding tags, views and messages
        log_level: Logging level name
        default_source: Mail source used by `fetch` when none is given
        fixture_path: JSON file read by the fixture source
        seed_defaults: Seed default tags/views into an empty store
        gmail: Gmail source settings
    """
    store_path: str = "~/.local/share/mail_triage/store.json"
    log_level: str = "INFO"
    default_source: str = "fixture"
    fixture_path: str = "emails.json"
    seed_defaults: bool = True
    gmail: GmailSourceConfig = field(default_factory=GmailSourceConfig)


def load_yaml_config(path: Path) -> Dict[str, Any]:
    """Load configuration from a YAML file. Unreadable files yield {}."""
    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {path}: expected a mapping at top level")
        return {}
    logger.info(f"Loaded config from {path}")
    return data


def find_config_file() -> Optional[Path]:
    """Find the first existing config file."""
    env_path = os.getenv(f"{ENV_PREFIX}CONFIG")
    if env_path:
        path = Path(env_path).expanduser()
        if path.exists():
            return path

    for path in DEFAULT_CONFIG_PATHS:
        if path.exists():
            return path

    return None


def load_config(config_path: Optional[Path] = None, env_prefix: str = ENV_PREFIX) -> Config:
    """
    Load configuration with proper precedence.

    Args:
        config_path: Explicit config file path (optional)
        env_prefix: Prefix for environment variables

    Returns:
        Populated Config object
    """
    config = Config()

    if config_path is None:
        config_path = find_config_file()

    if config_path:
        _apply_yaml_config(config, load_yaml_config(config_path))

    _apply_env_config(config, env_prefix)
    return config


def _apply_yaml_config(config: Config, data: Dict[str, Any]) -> None:
    """Apply YAML configuration data to config object."""
    if not data:
        return

    for key in ("store_path", "log_level", "default_source", "fixture_path", "seed_defaults"):
        if key in data:
            setattr(config, key, data[key])

    gmail = data.get("gmail")
    if isinstance(gmail, dict):
        for key in (
            "query",
            "max_results",
            "batch_size",
            "batch_delay_seconds",
            "client_secrets_file",
            "token_file",
            "scopes",
        ):
            if key in gmail:
                setattr(config.gmail, key, gmail[key])


def _env_flag(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def _apply_env_config(config: Config, prefix: str) -> None:
    """Apply environment variable overrides to config object."""
    if os.getenv(f"{prefix}STORE"):
        config.store_path = os.getenv(f"{prefix}STORE")
    if os.getenv(f"{prefix}LOG_LEVEL"):
        config.log_level = os.getenv(f"{prefix}LOG_LEVEL")
    if os.getenv(f"{prefix}SOURCE"):
        config.default_source = os.getenv(f"{prefix}SOURCE")
    if os.getenv(f"{prefix}FIXTURE"):
        config.fixture_path = os.getenv(f"{prefix}FIXTURE")
    if os.getenv(f"{prefix}SEED_DEFAULTS"):
        config.seed_defaults = _env_flag(os.getenv(f"{prefix}SEED_DEFAULTS", ""))

    # Gmail
    if os.getenv(f"{prefix}GMAIL_QUERY"):
        config.gmail.query = os.getenv(f"{prefix}GMAIL_QUERY")
    if os.getenv(f"{prefix}GMAIL_MAX_RESULTS"):
        config.gmail.max_results = int(os.getenv(f"{prefix}GMAIL_MAX_RESULTS"))
    if os.getenv("GMAIL_CLIENT_SECRETS"):
        config.gmail.client_secrets_file = os.getenv("GMAIL_CLIENT_SECRETS")
    if os.getenv("GMAIL_TOKEN_FILE"):
        config.gmail.token_file = os.getenv("GMAIL_TOKEN_FILE")


def create_sample_config(path: Optional[Path] = None) -> str:
    """
    Generate a sample configuration file.

    Args:
        path: Optional path to write the config file

    Returns:
        Sample YAML configuration string
    """
    sample = '''# Mail Triage Configuration
# Place this file at ~/.config/mail_triage/config.yaml

# JSON file holding tags, views and fetched messages
store_path: "~/.local/share/mail_triage/store.json"

# Logging level (DEBUG, INFO, WARNING, ERROR)
log_level: INFO

# Source used by `fetch` when --source is not given (fixture, gmail)
default_source: fixture

# Fixture file for the fixture source ({"emails": [...]})
fixture_path: "emails.json"

# Seed the default tags and views into an empty store
seed_defaults: true

# Gmail source settings
gmail:
  query: "in:inbox"
  max_results: 50
  batch_size: 5
  batch_delay_seconds: 1.0
  client_secrets_file: "~/.config/mail_triage/client_secret.json"
  token_file: "~/.config/mail_triage/token.json"
  # scopes:
  #   - "https://www.googleapis.com/auth/gmail.readonly"
'''

    if path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(sample)
        logger.info(f"Created sample config at {path}")

    return sample

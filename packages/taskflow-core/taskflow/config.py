"""
Taskflow Configuration

Loads settings from ~/.taskflow/config.yaml with environment variable overrides.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import os
import logging

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".taskflow"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_BASE_URL = "http://localhost:4000/api"
DEFAULT_TOKEN_FILE = "~/.taskflow/token"


@dataclass
class ApiConfig:
    """Task service connection settings."""

    base_url: str = DEFAULT_BASE_URL
    timeout: Optional[float] = None  # None keeps the HTTP client's default


@dataclass
class AuthConfig:
    """Where the session credential comes from."""

    token: Optional[str] = None
    token_file: str = DEFAULT_TOKEN_FILE

    def resolve_token(self) -> Optional[str]:
        """Return the configured token, reading the token file if needed."""
        if self.token:
            return self.token
        path = Path(self.token_file).expanduser()
        if path.exists():
            return path.read_text().strip() or None
        return None


@dataclass
class TaskflowConfig:
    """
    Complete Taskflow configuration.

    Loaded from ~/.taskflow/config.yaml with environment variable overrides.
    """

    api: ApiConfig = field(default_factory=ApiConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    @property
    def base_url(self) -> str:
        return self.api.base_url

    def to_dict(self) -> dict:
        """Convert to dictionary for display (masks secrets)."""
        result = asdict(self)

        if result.get("auth", {}).get("token"):
            token = result["auth"]["token"]
            result["auth"]["token"] = token[:6] + "..." if len(token) > 12 else "***"

        return result


def _parse_api_config(data: dict) -> ApiConfig:
    """Parse API configuration from YAML data."""
    api_data = data.get("api") or {}

    timeout = api_data.get("timeout")
    return ApiConfig(
        base_url=api_data.get("base_url", DEFAULT_BASE_URL),
        timeout=float(timeout) if timeout is not None else None,
    )


def _parse_auth_config(data: dict) -> AuthConfig:
    """Parse auth configuration from YAML data."""
    auth_data = data.get("auth") or {}

    token = auth_data.get("token")

    # Token from environment variable reference
    token_env = auth_data.get("token_env")
    if token_env and not token:
        token = os.environ.get(token_env)

    return AuthConfig(
        token=token,
        token_file=auth_data.get("token_file", DEFAULT_TOKEN_FILE),
    )


def load_config(config_path: Optional[Path] = None) -> TaskflowConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Optional path to config file. Defaults to ~/.taskflow/config.yaml

    Returns:
        TaskflowConfig instance
    """
    config_file = config_path or CONFIG_FILE
    config = TaskflowConfig()

    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f) or {}

            config.api = _parse_api_config(data)
            config.auth = _parse_auth_config(data)

        except yaml.YAMLError as e:
            logger.warning(f"Could not parse config file at {config_file}: {e}")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Unexpected error loading config from {config_file}: {e}")

    # Environment variable overrides
    if os.environ.get("TASKFLOW_API_URL"):
        config.api.base_url = os.environ["TASKFLOW_API_URL"]

    if os.environ.get("TASKFLOW_TIMEOUT"):
        try:
            config.api.timeout = float(os.environ["TASKFLOW_TIMEOUT"])
        except ValueError:
            logger.warning(f"Ignoring invalid TASKFLOW_TIMEOUT: {os.environ['TASKFLOW_TIMEOUT']}")

    if os.environ.get("TASKFLOW_TOKEN"):
        config.auth.token = os.environ["TASKFLOW_TOKEN"]

    if os.environ.get("TASKFLOW_TOKEN_FILE"):
        config.auth.token_file = os.environ["TASKFLOW_TOKEN_FILE"]

    return config


def save_config(config: TaskflowConfig, config_path: Optional[Path] = None) -> None:
    """
    Save configuration to file.

    The token itself is never written; only the token file location is.

    Args:
        config: TaskflowConfig instance to save
        config_path: Optional path to config file. Defaults to ~/.taskflow/config.yaml
    """
    config_file = config_path or CONFIG_FILE

    config_file.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "api": {
            "base_url": config.api.base_url,
        },
        "auth": {
            "token_file": config.auth.token_file,
        },
    }

    if config.api.timeout is not None:
        data["api"]["timeout"] = config.api.timeout

    with open(config_file, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    # Secure permissions (readable only by owner)
    config_file.chmod(0o600)

    logger.info(f"Configuration saved to {config_file}")


# Cached config instance
_config: Optional[TaskflowConfig] = None


def get_config() -> TaskflowConfig:
    """Get cached config instance, loading if needed."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> TaskflowConfig:
    """Force reload config from file."""
    global _config
    _config = load_config()
    return _config

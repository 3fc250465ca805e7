"""
Tests for taskflow configuration.
"""

import pytest
from pathlib import Path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TASKFLOW_API_URL", "TASKFLOW_TIMEOUT", "TASKFLOW_TOKEN", "TASKFLOW_TOKEN_FILE"):
        monkeypatch.delenv(name, raising=False)


def test_default_config():
    """Test default configuration values."""
    from taskflow.config import TaskflowConfig, DEFAULT_BASE_URL

    config = TaskflowConfig()

    assert config.api.base_url == DEFAULT_BASE_URL
    assert config.api.timeout is None
    assert config.auth.token is None
    assert config.auth.token_file == "~/.taskflow/token"


def test_load_config_without_file():
    """Test loading config when no file exists."""
    from taskflow.config import load_config, DEFAULT_BASE_URL

    config = load_config(Path("/nonexistent/config.yaml"))

    assert config.base_url == DEFAULT_BASE_URL


def test_load_config_from_yaml(temp_config_dir):
    """Test values are read from the YAML file."""
    from taskflow.config import load_config

    config_file = temp_config_dir / "config.yaml"
    config_file.write_text(
        "api:\n"
        "  base_url: https://tasks.example.test/api\n"
        "  timeout: 5\n"
        "auth:\n"
        "  token_file: /tmp/somewhere/token\n"
    )

    config = load_config(config_file)

    assert config.api.base_url == "https://tasks.example.test/api"
    assert config.api.timeout == 5.0
    assert config.auth.token_file == "/tmp/somewhere/token"


def test_load_config_token_env_reference(temp_config_dir, monkeypatch):
    """Test token_env points at another environment variable."""
    from taskflow.config import load_config

    monkeypatch.setenv("MY_TASK_TOKEN", "from-env-ref")
    config_file = temp_config_dir / "config.yaml"
    config_file.write_text("auth:\n  token_env: MY_TASK_TOKEN\n")

    config = load_config(config_file)

    assert config.auth.token == "from-env-ref"


def test_load_config_invalid_yaml(temp_config_dir):
    """Test that broken YAML falls back to defaults."""
    from taskflow.config import load_config, DEFAULT_BASE_URL

    config_file = temp_config_dir / "config.yaml"
    config_file.write_text("api: [unclosed\n")

    config = load_config(config_file)

    assert config.api.base_url == DEFAULT_BASE_URL


def test_load_config_with_env_override(monkeypatch):
    """Test environment variable overrides."""
    from taskflow.config import load_config

    monkeypatch.setenv("TASKFLOW_API_URL", "https://override.test/api")
    monkeypatch.setenv("TASKFLOW_TIMEOUT", "2.5")
    monkeypatch.setenv("TASKFLOW_TOKEN", "env-token")

    config = load_config(Path("/nonexistent/config.yaml"))

    assert config.api.base_url == "https://override.test/api"
    assert config.api.timeout == 2.5
    assert config.auth.token == "env-token"


def test_invalid_timeout_env_is_ignored(monkeypatch):
    """Test that a non-numeric timeout override is ignored."""
    from taskflow.config import load_config

    monkeypatch.setenv("TASKFLOW_TIMEOUT", "soon")

    config = load_config(Path("/nonexistent/config.yaml"))

    assert config.api.timeout is None


def test_resolve_token_reads_file(tmp_path):
    """Test the token file is used when no token is set."""
    from taskflow.config import AuthConfig

    token_file = tmp_path / "token"
    token_file.write_text("file-token\n")

    auth = AuthConfig(token_file=str(token_file))

    assert auth.resolve_token() == "file-token"


def test_resolve_token_missing_file(tmp_path):
    """Test resolving a token from a file that does not exist."""
    from taskflow.config import AuthConfig

    auth = AuthConfig(token_file=str(tmp_path / "absent"))

    assert auth.resolve_token() is None


def test_config_to_dict_masks_secrets():
    """Test that to_dict masks sensitive values."""
    from taskflow.config import TaskflowConfig, AuthConfig

    config = TaskflowConfig(auth=AuthConfig(token="eyJhbGciOiJIUzI1NiJ9.secretpayload"))

    result = config.to_dict()

    assert "secretpayload" not in str(result)
    assert "..." in result["auth"]["token"]


def test_save_config_round_trip(temp_config_dir):
    """Test saving writes a loadable file without the token."""
    from taskflow.config import TaskflowConfig, ApiConfig, AuthConfig, load_config, save_config

    config_file = temp_config_dir / "config.yaml"
    config = TaskflowConfig(
        api=ApiConfig(base_url="https://saved.test/api", timeout=3.0),
        auth=AuthConfig(token="do-not-write"),
    )

    save_config(config, config_file)
    loaded = load_config(config_file)

    assert "do-not-write" not in config_file.read_text()
    assert loaded.api.base_url == "https://saved.test/api"
    assert loaded.api.timeout == 3.0
    assert oct(config_file.stat().st_mode & 0o777) == "0o600"


def test_get_config_is_cached(temp_config_dir, monkeypatch):
    """Test that get_config loads once and reload_config re-reads the file."""
    import taskflow.config as config_module

    config_file = temp_config_dir / "config.yaml"
    config_file.write_text("api:\n  base_url: https://first.test/api\n")
    monkeypatch.delenv("TASKFLOW_API_URL", raising=False)
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_file)
    monkeypatch.setattr(config_module, "_config", None)

    first = config_module.get_config()
    config_file.write_text("api:\n  base_url: https://second.test/api\n")

    assert config_module.get_config() is first
    assert config_module.reload_config().base_url == "https://second.test/api"
    assert config_module.get_config().base_url == "https://second.test/api"

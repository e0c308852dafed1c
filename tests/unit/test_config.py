"""Unit tests for config.py"""

import pytest

from jknm.config import load_config


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run each test where no config.yaml exists unless the test writes one."""
    monkeypatch.chdir(tmp_path)


def test_load_config_uses_env_db_url(monkeypatch):
    """JKNM_DB_URL env var is picked up by load_config."""
    monkeypatch.setenv("JKNM_DB_URL", "sqlite:///env.db")
    settings = load_config()
    assert settings.db_url == "sqlite:///env.db"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """JKNM_DB_URL takes precedence over config.yaml db_url."""
    (tmp_path / "config.yaml").write_text("db_url: 'sqlite:///project.db'\n")
    monkeypatch.setenv("JKNM_DB_URL", "sqlite:///override.db")
    settings = load_config()
    assert settings.db_url == "sqlite:///override.db"


def test_load_config_reads_config_yaml(tmp_path):
    (tmp_path / "config.yaml").write_text("index_name: staging\nmax_workers: 8\n")
    settings = load_config()
    assert settings.index_name == "staging"
    assert settings.max_workers == 8


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the JKNM_DB_URL env var."""
    monkeypatch.setenv("JKNM_DB_URL", "sqlite:///env.db")
    settings = load_config(overrides={"db_url": "sqlite:///cli.db", "index_name": None})
    assert settings.db_url == "sqlite:///cli.db"
    assert settings.index_name == "articles"


def test_load_config_defaults():
    """Settings defaults apply when no config.yaml, env var, or CLI override exists."""
    settings = load_config()
    assert settings.db_url == "sqlite:///jknm.db"
    assert settings.base_url == "https://www.jknm.si/novica/"
    assert settings.max_workers == 4
    assert settings.fail_fast is False
    assert settings.algolia_app_id is None


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


# --- generalized env var pattern ---

def test_load_config_env_max_workers(monkeypatch):
    """JKNM_MAX_WORKERS env var is coerced to int and applied to settings."""
    monkeypatch.setenv("JKNM_MAX_WORKERS", "2")
    assert load_config().max_workers == 2


def test_load_config_env_fail_fast(monkeypatch):
    """JKNM_FAIL_FAST env var is coerced to bool."""
    monkeypatch.setenv("JKNM_FAIL_FAST", "true")
    assert load_config().fail_fast is True


def test_load_config_env_algolia_credentials(monkeypatch):
    monkeypatch.setenv("JKNM_ALGOLIA_APP_ID", "APP")
    monkeypatch.setenv("JKNM_ALGOLIA_API_KEY", "KEY")
    settings = load_config()
    assert (settings.algolia_app_id, settings.algolia_api_key) == ("APP", "KEY")


def test_load_config_invalid_value(monkeypatch):
    """Out-of-range values are reported as invalid settings."""
    monkeypatch.setenv("JKNM_MAX_WORKERS", "0")
    with pytest.raises(ValueError, match="Invalid settings"):
        load_config()


def test_load_config_invalid_log_level(monkeypatch):
    monkeypatch.setenv("JKNM_LOG_LEVEL", "LOUD")
    with pytest.raises(ValueError, match="Invalid settings"):
        load_config()

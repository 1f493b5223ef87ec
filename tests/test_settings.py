import pytest

from trainerhub.config.settings import get_logging_config, get_settings
from trainerhub.core.logging import build_logging_config


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def test_packaged_defaults_load():
    settings = get_settings()
    assert settings.search.default_page_size == 50
    assert settings.search.max_page_size == 100
    assert settings.search.rank_matches_first is True
    assert "{training_title}" in settings.notifications.accepted.subject


def test_env_overrides_win_over_yaml(monkeypatch, fresh_settings):
    monkeypatch.setenv("TRAINERHUB_LOG_LEVEL", "debug")
    monkeypatch.setenv("TRAINERHUB_CORS_ORIGINS", "http://localhost:3000, http://127.0.0.1:3000")
    settings = fresh_settings()
    assert settings.app.log_level == "debug"
    assert settings.api.cors_origins == ["http://localhost:3000", "http://127.0.0.1:3000"]
    assert settings.database.url == "sqlite://"


def test_external_config_file(tmp_path, monkeypatch, fresh_settings):
    path = tmp_path / "trainerhub.yaml"
    path.write_text("search:\n  default_page_size: 10\n  rank_matches_first: false\n", encoding="utf-8")
    monkeypatch.setenv("TRAINERHUB_CONFIG_PATH", str(path))
    settings = fresh_settings()
    assert settings.search.default_page_size == 10
    assert settings.search.rank_matches_first is False
    assert settings.notifications.declined.subject.startswith("Request declined")


def test_config_root_must_be_a_mapping(tmp_path, monkeypatch, fresh_settings):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    monkeypatch.setenv("TRAINERHUB_CONFIG_PATH", str(path))
    with pytest.raises(ValueError, match="expected a mapping"):
        fresh_settings()


def test_logging_config_has_console_handler():
    config = get_logging_config()
    assert config["version"] == 1
    assert "console" in config["handlers"]


def test_logging_config_follows_settings():
    settings = get_settings().model_copy(deep=True)
    settings.app.log_level = "debug"
    settings.database.echo = True

    config = build_logging_config(settings)
    assert config["root"]["level"] == "DEBUG"
    assert config["handlers"]["console"]["level"] == "DEBUG"
    assert config["loggers"]["sqlalchemy.engine"]["level"] == "INFO"

    # The cached YAML payload is not mutated.
    assert get_logging_config()["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"

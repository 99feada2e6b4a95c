"""Tests for configuration management."""

import logging

import pytest

from salon_tracker.utils import config as config_module
from salon_tracker.utils.config import Config, get_config, get_database_url, reset_config
from salon_tracker.utils.constants import DATABASE_FILENAME


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point both environments at a temporary directory."""
    monkeypatch.setattr(config_module.Path, "home", classmethod(lambda cls: tmp_path))
    monkeypatch.setattr(Config, "_project_data_dir", lambda self: tmp_path / "data")
    monkeypatch.delenv(config_module.ENVIRONMENT_VARIABLE, raising=False)
    monkeypatch.delenv(config_module.DATABASE_URL_VARIABLE, raising=False)
    reset_config()
    yield tmp_path
    reset_config()


def test_production_database_in_documents(isolated_config):
    config = Config("production")
    assert config.is_production
    expected = isolated_config / "Documents" / "SalonTracker" / DATABASE_FILENAME
    assert config.database_path == expected
    assert config.database_path.parent.is_dir()


def test_development_database_in_project_data(isolated_config):
    config = Config("development")
    assert config.is_development
    assert config.database_path == isolated_config / "data" / DATABASE_FILENAME


def test_database_url_is_sqlite(isolated_config):
    config = Config("development")
    assert config.database_url.startswith("sqlite:///")
    assert config.database_url.endswith(DATABASE_FILENAME)
    assert not config.database_exists()


def test_environment_variable_selects_environment(monkeypatch):
    monkeypatch.setenv(config_module.ENVIRONMENT_VARIABLE, "development")
    assert get_config().is_development


def test_singleton_keeps_first_environment(caplog):
    first = get_config("development")
    with caplog.at_level(logging.WARNING):
        second = get_config("production")

    assert second is first
    assert second.is_development
    assert "singleton" in caplog.text


def test_reset_config_creates_new_instance():
    first = get_config("development")
    reset_config()
    assert get_config("development") is not first


def test_get_database_url_uses_singleton():
    assert get_database_url() == get_config().database_url


def test_unknown_environment_rejected():
    with pytest.raises(ValueError, match="staging"):
        Config("staging")


def test_database_url_override(monkeypatch, isolated_config):
    monkeypatch.setenv(config_module.DATABASE_URL_VARIABLE, "sqlite:///:memory:")
    config = get_config()
    assert config.database_url == "sqlite:///:memory:"
    assert not (isolated_config / "Documents").exists()

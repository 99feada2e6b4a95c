"""
Configuration management for the Salon Tracker application.

Two environments are known:
- ``production``: the database lives in ``~/Documents/SalonTracker``
- ``development``: the database lives in the project ``data/`` directory

The environment comes from ``SALON_TRACKER_ENV``. ``SALON_TRACKER_DATABASE_URL``
replaces the file location entirely (e.g. a shared test database).
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
)

logger = logging.getLogger(__name__)

ENVIRONMENT_VARIABLE = "SALON_TRACKER_ENV"
DATABASE_URL_VARIABLE = "SALON_TRACKER_DATABASE_URL"

ENVIRONMENTS = ("production", "development")
USER_DATA_DIRNAME = "SalonTracker"


class Config:
    """
    Where the salon database lives for one environment.

    Args:
        environment: 'production' or 'development'
        database_url: Explicit SQLAlchemy URL; when given, no directory is created

    Raises:
        ValueError: For an unknown environment
    """

    def __init__(self, environment: str = "production", database_url: Optional[str] = None):
        if environment not in ENVIRONMENTS:
            raise ValueError(
                f"Unknown environment {environment!r}; expected one of {', '.join(ENVIRONMENTS)}"
            )
        self.environment = environment
        self._database_url = database_url

        data_dir = self._project_data_dir() if self.is_development else self._user_data_dir()
        self._database_path = data_dir / DATABASE_FILENAME

        if database_url is None:
            data_dir.mkdir(parents=True, exist_ok=True)

    def _project_data_dir(self) -> Path:
        # src/salon_tracker/utils/config.py -> project root
        return Path(__file__).resolve().parents[3] / "data"

    def _user_data_dir(self) -> Path:
        return Path.home() / "Documents" / USER_DATA_DIRNAME

    @property
    def app_name(self) -> str:
        return APP_NAME

    @property
    def app_version(self) -> str:
        return APP_VERSION

    @property
    def database_version(self) -> str:
        """Schema version of the visit/catalog tables."""
        return DATABASE_VERSION

    @property
    def database_path(self) -> Path:
        """Database file for this environment (unused when a URL override is set)."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """SQLAlchemy URL: the override if set, else ``sqlite:///<database_path>``."""
        if self._database_url:
            return self._database_url
        return f"sqlite:///{self._database_path.as_posix()}"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def database_exists(self) -> bool:
        """Check if the database file exists."""
        return self._database_path.exists()

    def __repr__(self) -> str:
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    The first call decides the environment (argument, then
    SALON_TRACKER_ENV, then production). Later calls asking for another
    environment get the existing instance and a warning, so the database never
    switches mid-session.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENVIRONMENT_VARIABLE, "production")
        _config_instance = Config(
            environment, database_url=os.environ.get(DATABASE_URL_VARIABLE) or None
        )
        logger.debug("Configuration created", extra={"environment": environment})
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but the singleton "
            f"already uses environment='{_config_instance.environment}'; keeping it."
        )

    return _config_instance


def reset_config():
    """Forget the global configuration (tests)."""
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """Get the database URL."""
    return get_config().database_url

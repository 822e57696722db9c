"""
Configuration Management for pyYard

All settings come from environment variables. A dotenv file (default
config/.env, override with PYYARD_ENV_FILE) is loaded first so a deployment can
keep credentials next to the code without exporting them.

Environment Variables:

    Husqvarna (mower family, enabled when key, username and password are set):
        HUSQVARNA_API_KEY    - Application key (also read from API_KEY)
        HUSQVARNA_USERNAME   - Account username (also read from USERNAME)
        HUSQVARNA_PASSWORD   - Account password (also read from PASSWORD)

    Rachio (sprinkler family, enabled when the key is set):
        RACHIO_API_KEY       - Personal API key

    Enrichment:
        DARKSKY_API_KEY      - Weather API key (required)
        MAPBOX_API_KEY       - Geocoding API key
        PYYARD_GEOCODE       - Resolve street addresses "yes"/"no" (default: "no")

    Database:
        MYSQL_HOST, MYSQL_USERNAME, MYSQL_PASSWORD, MYSQL_DATABASE
        PYYARD_DB_URL        - SQLAlchemy URL, takes precedence over MYSQL_*

    Runtime:
        PYYARD_TIMEOUT       - Seconds per upstream HTTP call (default: 10)
        PYYARD_WORKERS       - Devices fetched concurrently (default: 1)
        PYYARD_INTERVAL      - Minutes between runs in loop mode, at least 1 (default: 15)
        PYYARD_LOCK_TIMEOUT  - Seconds to wait for a running collection (default: 0)
        PYYARD_TIMEZONE      - Timezone for log timestamps (default: "America/New_York")
        PYYARD_DEBUG         - Enable debug logging "yes"/"no" (default: "no")
"""
import logging
import os
from typing import Optional

import dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from pyyard.exceptions import PyYardInvalidConfigurationParameter

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = os.path.join("config", ".env")


class Settings(BaseSettings):
    """Collector settings."""

    husqvarna_api_key: Optional[str] = Field(default=None,
                                             validation_alias=AliasChoices("HUSQVARNA_API_KEY", "API_KEY"))
    husqvarna_username: Optional[str] = Field(default=None,
                                              validation_alias=AliasChoices("HUSQVARNA_USERNAME", "USERNAME"))
    husqvarna_password: Optional[str] = Field(default=None,
                                              validation_alias=AliasChoices("HUSQVARNA_PASSWORD", "PASSWORD"))
    rachio_api_key: Optional[str] = Field(default=None, alias="RACHIO_API_KEY")
    darksky_api_key: Optional[str] = Field(default=None, alias="DARKSKY_API_KEY")
    mapbox_api_key: Optional[str] = Field(default=None, alias="MAPBOX_API_KEY")

    mysql_host: Optional[str] = Field(default=None, alias="MYSQL_HOST")
    mysql_username: Optional[str] = Field(default=None, alias="MYSQL_USERNAME")
    mysql_password: Optional[str] = Field(default=None, alias="MYSQL_PASSWORD")
    mysql_database: Optional[str] = Field(default=None, alias="MYSQL_DATABASE")
    db_url: Optional[str] = Field(default=None, alias="PYYARD_DB_URL")

    timeout: int = Field(default=10, alias="PYYARD_TIMEOUT")
    workers: int = Field(default=1, alias="PYYARD_WORKERS")
    interval: int = Field(default=15, alias="PYYARD_INTERVAL")
    lock_timeout: float = Field(default=0, alias="PYYARD_LOCK_TIMEOUT")
    geocode: bool = Field(default=False, alias="PYYARD_GEOCODE")
    timezone: str = Field(default="America/New_York", alias="PYYARD_TIMEZONE")
    debug: bool = Field(default=False, alias="PYYARD_DEBUG")

    model_config = SettingsConfigDict(case_sensitive=False, populate_by_name=True, extra="ignore")

    @property
    def husqvarna_enabled(self) -> bool:
        return bool(self.husqvarna_api_key and self.husqvarna_username and self.husqvarna_password)

    @property
    def rachio_enabled(self) -> bool:
        return bool(self.rachio_api_key)

    @property
    def geocode_enabled(self) -> bool:
        return bool(self.geocode and self.mapbox_api_key)

    def database_url(self):
        if self.db_url:
            return self.db_url
        if not self.mysql_host or not self.mysql_database:
            raise PyYardInvalidConfigurationParameter("Set PYYARD_DB_URL or MYSQL_HOST and MYSQL_DATABASE")
        return URL.create("mysql+pymysql", username=self.mysql_username, password=self.mysql_password,
                          host=self.mysql_host, database=self.mysql_database)

    def validate_run(self):
        if not (self.husqvarna_enabled or self.rachio_enabled):
            raise PyYardInvalidConfigurationParameter("No device family configured: set Husqvarna or Rachio credentials")
        if not self.darksky_api_key:
            raise PyYardInvalidConfigurationParameter("DARKSKY_API_KEY is required")
        if self.workers < 1:
            raise PyYardInvalidConfigurationParameter(f"PYYARD_WORKERS must be at least 1, got {self.workers}")
        if self.interval < 1:
            raise PyYardInvalidConfigurationParameter(f"PYYARD_INTERVAL must be at least 1 minute, got {self.interval}")
        if self.geocode and not self.mapbox_api_key:
            logger.warning("PYYARD_GEOCODE is set but MAPBOX_API_KEY is missing - addresses disabled")


def load_settings(env_file: Optional[str] = None) -> Settings:
    env_file = env_file or os.getenv("PYYARD_ENV_FILE", DEFAULT_ENV_FILE)
    if dotenv.load_dotenv(env_file):
        logger.debug(f"Loaded environment from {env_file}")
    return Settings()

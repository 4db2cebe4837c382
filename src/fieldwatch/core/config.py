"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ApiConfig(BaseSettings):
    """Remote monitoring API configuration."""

    model_config = {"env_prefix": "FIELDWATCH_API_"}

    base_url: str = "http://localhost:8000"
    timeout_seconds: int = 30
    max_retries: int = Field(default=1, ge=0)


class SessionConfig(BaseSettings):
    """Session credential storage configuration."""

    model_config = {"env_prefix": "FIELDWATCH_SESSION_"}

    token_store: str = "yaml"
    token_path: str = "data/session.yml"


class MapConfig(BaseSettings):
    """Map viewport configuration.

    The default center is only used when neither a parcel polygon nor the
    server-supplied city center yields a usable point.
    """

    model_config = {"env_prefix": "FIELDWATCH_MAP_"}

    default_latitude: float | None = None
    default_longitude: float | None = None
    latitude_delta: float = 0.1
    longitude_delta: float = 0.1


class AlertConfig(BaseSettings):
    """Fire-weather alert configuration."""

    model_config = {"env_prefix": "FIELDWATCH_ALERT_"}

    fwi_threshold: float = 35.0


class Settings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "FIELDWATCH_"}

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    api: ApiConfig = Field(default_factory=ApiConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    map: MapConfig = Field(default_factory=MapConfig)
    alert: AlertConfig = Field(default_factory=AlertConfig)

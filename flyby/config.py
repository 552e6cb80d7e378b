"""Configuration settings for the FlyBy tracker."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("flyby.config")

_DEFAULT_POLL_INTERVALS = {
    "airplaneslive": 2.0,
    "opensky": 6.0,
}


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def _get_float(env_var: str) -> float | None:
    value = os.getenv(env_var)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric value for %s: %r", env_var, value)
        return None


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    flyby_env: str = os.getenv("FLYBY_ENV", "local")
    log_level: str = os.getenv("FLYBY_LOG_LEVEL", "INFO")

    # Fixed reference point; falls back to the viewer's reported location
    home_lat: float | None = _get_float("FLYBY_HOME_LAT")
    home_lon: float | None = _get_float("FLYBY_HOME_LON")

    # Live polling
    live_provider: str = os.getenv("FLYBY_LIVE_PROVIDER", "airplaneslive").lower()
    search_radius_nm: float = float(os.getenv("FLYBY_SEARCH_RADIUS_NM", "100"))
    poll_interval_s: float | None = _get_float("FLYBY_POLL_INTERVAL_S")
    location_precision: int = int(os.getenv("FLYBY_LOCATION_PRECISION", "2"))

    # Proximity alerts
    notification_radius_km: float = float(os.getenv("FLYBY_NOTIFICATION_RADIUS_KM", "10"))
    notification_cooldown_s: float = float(
        os.getenv("FLYBY_NOTIFICATION_COOLDOWN_S", str(30 * 60))
    )
    desktop_notifications: bool = _get_bool("FLYBY_DESKTOP_NOTIFICATIONS", default=True)

    # Airplanes.live (keyed-object live feed)
    airplaneslive_base_url: str = os.getenv(
        "AIRPLANESLIVE_BASE_URL", "https://api.airplanes.live/v2"
    )
    airplaneslive_timeout: float = float(os.getenv("AIRPLANESLIVE_TIMEOUT", "10.0"))

    # OpenSky (positional live feed and historical tracks)
    opensky_base_url: str = os.getenv("OPENSKY_BASE_URL", "https://opensky-network.org/api")
    opensky_auth_url: str = os.getenv(
        "OPENSKY_AUTH_URL",
        "https://auth.opensky-network.org/auth/realms/opensky-network"
        "/protocol/openid-connect/token",
    )
    opensky_timeout: float = float(os.getenv("OPENSKY_TIMEOUT", "10.0"))
    opensky_client_id: str | None = os.getenv("OPENSKY_CLIENT_ID")
    opensky_client_secret: str | None = os.getenv("OPENSKY_CLIENT_SECRET")

    # Flightradar24 (secondary lookup and flight summaries)
    fr24_base_url: str = os.getenv("FR24_BASE_URL", "https://fr24api.flightradar24.com/api")
    fr24_api_key: str | None = os.getenv("FR24_API_KEY")
    fr24_timeout: float = float(os.getenv("FR24_TIMEOUT", "10.0"))

    # ntfy push notifications
    ntfy_url: str | None = os.getenv("NTFY_URL")
    ntfy_topic: str = os.getenv("NTFY_TOPIC", "flyby-alerts")
    ntfy_priority: int = int(os.getenv("NTFY_PRIORITY", "3"))
    ntfy_timeout: float = float(os.getenv("NTFY_TIMEOUT", "10.0"))

    @property
    def home_location(self) -> tuple[float, float] | None:
        if self.home_lat is None or self.home_lon is None:
            return None
        return self.home_lat, self.home_lon

    @property
    def effective_poll_interval(self) -> float:
        if self.poll_interval_s:
            return self.poll_interval_s
        return _DEFAULT_POLL_INTERVALS.get(self.live_provider, 2.0)


settings = Settings()

if settings.live_provider not in _DEFAULT_POLL_INTERVALS:
    logger.warning(
        "Unknown live provider %r; falling back to airplaneslive", settings.live_provider
    )
    settings.live_provider = "airplaneslive"

__all__ = ["settings", "Settings"]

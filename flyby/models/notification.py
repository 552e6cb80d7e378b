"""Proximity alert payloads and cooldown bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

METERS_TO_FEET = 3.28084
MPS_TO_KNOTS = 1.94384

ALERT_TITLE = "✈️ Flight Overhead!"


def _format_whole(value: Optional[float], factor: float) -> str:
    if value is None:
        return "N/A"
    return f"{round(value * factor):,}"


class ProximityAlert(BaseModel):
    """Content delivered to every notification channel for one flight."""

    flight_id: str = Field(..., description="Entity id the alert is keyed by")
    callsign: Optional[str] = Field(default=None)
    airline: Optional[str] = Field(
        default=None, description="Operator name or airline resolved from the callsign"
    )
    distance_km: float = Field(..., description="Distance from the reference point")
    altitude_m: Optional[float] = Field(default=None)
    ground_speed_mps: Optional[float] = Field(default=None)
    is_military: bool = False
    is_notable: bool = False
    operator: Optional[str] = Field(default=None, description="Raw operator, used for tags")

    @property
    def title(self) -> str:
        return ALERT_TITLE

    @property
    def display_callsign(self) -> str:
        return self.callsign or "Unknown"

    @property
    def body(self) -> str:
        header = self.display_callsign
        if self.airline:
            header = f"{header} ({self.airline})"
        lines = [
            header,
            f"Distance: {self.distance_km:.1f} km",
            f"Altitude: {_format_whole(self.altitude_m, METERS_TO_FEET)} ft",
            f"Speed: {_format_whole(self.ground_speed_mps, MPS_TO_KNOTS)} kts",
        ]
        if self.is_military:
            lines.append("\U0001f7e2 MILITARY")
        elif self.is_notable:
            lines.append("\U0001f7e0 SPECIAL")
        return "\n".join(lines)

    @property
    def tags(self) -> list[str]:
        operator_tag = "_".join(self.operator.lower().split()) if self.operator else "unknown"
        return ["airplane", operator_tag]

    @property
    def click_url(self) -> str:
        return f"https://www.flightradar24.com/{self.callsign or self.flight_id}"


@dataclass
class NotificationRecord:
    """Marks an entity as alerted until ``expires_at`` (monotonic seconds)."""

    flight_id: str
    notified_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


__all__ = ["ALERT_TITLE", "NotificationRecord", "ProximityAlert"]

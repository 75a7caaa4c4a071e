"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PerfSample:
    cpu_percent: float
    memory_percent: float
    volume_percent: float
    battery_percent: float


@dataclass(frozen=True)
class WeatherReport:
    temperature: dict[str, Any] | None
    description: str | None
    rain: str | None

    @property
    def complete(self) -> bool:
        return bool(self.temperature and self.description and self.rain)

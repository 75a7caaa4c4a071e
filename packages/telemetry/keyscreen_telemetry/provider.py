"""Cross-platform performance sampling with graceful volume/battery fallbacks."""

from __future__ import annotations

import platform
import re
import subprocess

import psutil

from .models import PerfSample


_AMIXER_RE = re.compile(r"\[(\d{1,3})%\]")


class _VolumeAdapter:
    def poll(self) -> float | None:
        return None


class _MacVolumeAdapter(_VolumeAdapter):
    def poll(self) -> float | None:
        out = subprocess.run(
            ["osascript", "-e", "output volume of (get volume settings)"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
        value = out.stdout.strip()
        return float(value) if value.isdigit() else None


class _AlsaVolumeAdapter(_VolumeAdapter):
    def poll(self) -> float | None:
        out = subprocess.run(
            ["amixer", "get", "Master"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
        match = _AMIXER_RE.search(out.stdout)
        return float(match.group(1)) if match else None


def _build_volume_adapter(system: str) -> _VolumeAdapter:
    if system == "Darwin":
        return _MacVolumeAdapter()
    if system == "Linux":
        return _AlsaVolumeAdapter()
    return _VolumeAdapter()


def _battery_percent() -> float:
    try:
        battery = psutil.sensors_battery()
    except (AttributeError, NotImplementedError, OSError):
        return 100.0
    if battery is None:
        return 100.0
    return float(battery.percent)


class PerfProvider:
    """Single polling provider for the performance screen."""

    def __init__(self) -> None:
        self._platform = platform.system()
        self._volume = _build_volume_adapter(self._platform)
        # Prime non-blocking CPU measurement.
        psutil.cpu_percent(interval=None)

    def _volume_percent(self) -> float:
        try:
            value = self._volume.poll()
        except (OSError, subprocess.SubprocessError, ValueError):
            value = None
        return 0.0 if value is None else value

    def poll(self) -> PerfSample:
        return PerfSample(
            cpu_percent=float(psutil.cpu_percent(interval=None)),
            memory_percent=float(psutil.virtual_memory().percent),
            volume_percent=self._volume_percent(),
            battery_percent=_battery_percent(),
        )

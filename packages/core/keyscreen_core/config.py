"""Persistent app settings schema and load/save helpers."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from keyscreen_hid import DeviceIdentity, PacingPolicy, default_pacing

from .logging_setup import config_root


CONFIG_VERSION = 2

DEFAULT_WEATHER_URL = "https://www.yahoo.com/news/weather/canada/ottawa/ottawa-24017230"


@dataclass
class DeviceConfig:
    product_name: str = "Mercutio"
    vendor_id: int = 0x6D77
    product_id: int = 0x1703
    usage_page: int = 0xFF60
    usage_id: int = 0x61

    def identity(self) -> DeviceIdentity:
        return DeviceIdentity(
            product_name=self.product_name,
            usage_page=self.usage_page,
            usage_id=self.usage_id,
            vendor_id=self.vendor_id,
            product_id=self.product_id,
        )


@dataclass
class DeliveryConfig:
    interval_ms: int = 1000
    screen_count: int = 4
    multi_frame: bool = False
    pre_write_ms: int | None = None
    post_write_ms: int | None = None

    def pacing(self, system: str | None = None) -> PacingPolicy:
        platform_default = default_pacing(system)
        pre = platform_default.pre_write_s if self.pre_write_ms is None else self.pre_write_ms / 1000
        post = platform_default.post_write_s if self.post_write_ms is None else self.post_write_ms / 1000
        return PacingPolicy(pre_write_s=pre, post_write_s=post)


@dataclass
class ProducersConfig:
    perf_slot: int = 2
    weather_slot: int = 3
    perf_interval_ms: int = 1000
    weather_interval_ms: int = 1000
    weather_url: str = DEFAULT_WEATHER_URL
    bar_width: int = 6


@dataclass
class NotificationsConfig:
    timeout_ms: int = 30000


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    device: DeviceConfig = field(default_factory=DeviceConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    producers: ProducersConfig = field(default_factory=ProducersConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _as_int(value: Any, fallback: int) -> int:
    # Hex strings such as "0xff60" are accepted for USB identifiers.
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            return fallback
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _normalize_device(cfg: AppConfig) -> None:
    defaults = DeviceConfig()
    cfg.device.product_name = str(cfg.device.product_name)
    cfg.device.vendor_id = _as_int(cfg.device.vendor_id, defaults.vendor_id) & 0xFFFF
    cfg.device.product_id = _as_int(cfg.device.product_id, defaults.product_id) & 0xFFFF
    cfg.device.usage_page = _as_int(cfg.device.usage_page, defaults.usage_page) & 0xFFFF
    cfg.device.usage_id = _as_int(cfg.device.usage_id, defaults.usage_id) & 0xFFFF


def _normalize_delivery(cfg: AppConfig) -> None:
    cfg.delivery.interval_ms = max(200, min(10000, int(cfg.delivery.interval_ms)))
    cfg.delivery.screen_count = max(1, min(255, int(cfg.delivery.screen_count)))
    cfg.delivery.multi_frame = bool(cfg.delivery.multi_frame)
    if cfg.delivery.pre_write_ms is not None:
        cfg.delivery.pre_write_ms = max(0, int(cfg.delivery.pre_write_ms))
    if cfg.delivery.post_write_ms is not None:
        cfg.delivery.post_write_ms = max(0, int(cfg.delivery.post_write_ms))


def _normalize_producers(cfg: AppConfig) -> None:
    cfg.producers.perf_interval_ms = max(200, int(cfg.producers.perf_interval_ms))
    cfg.producers.weather_interval_ms = max(200, int(cfg.producers.weather_interval_ms))
    cfg.producers.bar_width = max(1, min(16, int(cfg.producers.bar_width)))
    cfg.notifications.timeout_ms = max(1000, int(cfg.notifications.timeout_ms))


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 1))
    data = dict(raw)

    if version < 2:
        # v1 kept the keyboard identity and update interval at the top level.
        device = dict(data.get("device", {}) or {})
        for old, new in (
            ("keyboard_name", "product_name"),
            ("vendor_id", "vendor_id"),
            ("product_id", "product_id"),
            ("usage_page", "usage_page"),
            ("usage_id", "usage_id"),
        ):
            if old in data:
                device.setdefault(new, data.pop(old))
        data["device"] = device
        delivery = dict(data.get("delivery", {}) or {})
        if "update_ms" in data:
            delivery.setdefault("interval_ms", data.pop("update_ms"))
        data["delivery"] = delivery
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        device=_merge(DeviceConfig, data.get("device", {})),
        delivery=_merge(DeliveryConfig, data.get("delivery", {})),
        producers=_merge(ProducersConfig, data.get("producers", {})),
        notifications=_merge(NotificationsConfig, data.get("notifications", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_device(cfg)
    _normalize_delivery(cfg)
    _normalize_producers(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path

"""Wires the screen store, device session, delivery loop, failure path, and producers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from keyscreen_hid import DeviceSession, HidTransport
from keyscreen_telemetry import PeriodicProducer, WeatherProvider, perf_screen_source, weather_screen_source

from .config import AppConfig
from .diagnostics import DiagnosticsExporter, build_doctor_payload
from .failure import FailureHandler, Notifier
from .logging_setup import get_logger
from .scheduler import DeliveryScheduler
from .screen_store import ScreenStore


@dataclass
class KeyScreenRuntime:
    config: AppConfig
    store: ScreenStore
    session: DeviceSession
    scheduler: DeliveryScheduler
    failure: FailureHandler
    producers: list[PeriodicProducer] = field(default_factory=list)

    def start(self) -> None:
        for producer in self.producers:
            producer.start()
        self.scheduler.start()

    def run_forever(self) -> int:
        for producer in self.producers:
            producer.start()
        try:
            self.scheduler.run_forever()
        finally:
            self.shutdown()
        return self.failure.exit_code or 0

    def shutdown(self) -> None:
        self.scheduler.stop()
        for producer in self.producers:
            producer.stop()
        self.session.close()

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        return self.session.recent_events(limit)

    def export_diagnostics(self, output_dir: Path | None = None) -> Path:
        doctor = build_doctor_payload(self.config, devices=self.session.transport.discover())
        doctor["session_status"] = self.session.status.value
        return DiagnosticsExporter().bundle(
            cfg=self.config,
            doctor_payload=doctor,
            recent_session_events=self.recent_events(),
            output_dir=output_dir,
        )


def _slot_publisher(store: ScreenStore, slot: int) -> Callable[[str], None]:
    def publish(text: str) -> None:
        store.set(slot, text)

    return publish


def build_producers(cfg: AppConfig, store: ScreenStore) -> list[PeriodicProducer]:
    logger = get_logger("producers")
    producers: list[PeriodicProducer] = []
    p = cfg.producers

    if 0 <= p.perf_slot < len(store):
        producers.append(
            PeriodicProducer(
                "perf",
                perf_screen_source(bar_width=p.bar_width),
                _slot_publisher(store, p.perf_slot),
                interval_ms=p.perf_interval_ms,
            )
        )
    else:
        logger.info("performance screen disabled", extra={"event": "producer_disabled"})

    if 0 <= p.weather_slot < len(store) and p.weather_url:
        producers.append(
            PeriodicProducer(
                "weather",
                weather_screen_source(WeatherProvider(p.weather_url), forecast=cfg.delivery.multi_frame),
                _slot_publisher(store, p.weather_slot),
                interval_ms=p.weather_interval_ms,
            )
        )
    else:
        logger.info("weather screen disabled", extra={"event": "producer_disabled"})

    return producers


def build_runtime(
    cfg: AppConfig,
    notifier: Notifier | None = None,
    terminate: Callable[[int], None] | None = None,
    transport: Any | None = None,
    transcript_path: Path | None = None,
    with_producers: bool = True,
) -> KeyScreenRuntime:
    store = ScreenStore(cfg.delivery.screen_count)
    session = DeviceSession(
        transport or HidTransport(transcript_path=transcript_path),
        identity=cfg.device.identity(),
        screen_count=cfg.delivery.screen_count,
        pacing=cfg.delivery.pacing(),
        multi_frame=cfg.delivery.multi_frame,
    )
    failure = FailureHandler(session, notifier=notifier, terminate=terminate)
    scheduler = DeliveryScheduler(
        session,
        store,
        interval_ms=cfg.delivery.interval_ms,
        on_failure=failure.handle,
    )
    failure.scheduler = scheduler

    return KeyScreenRuntime(
        config=cfg,
        store=store,
        session=session,
        scheduler=scheduler,
        failure=failure,
        producers=(build_producers(cfg, store) if with_producers else []),
    )

"""Device session: discovery, handshake, inbound selection reports, and paced delivery."""

from __future__ import annotations

import logging
import platform
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable

from .encoder import ProtocolEncoder
from .models import DeliveryState, DeliveryStats, DeviceIdentity, HidDeviceInfo, PacingPolicy, SessionState


_log = logging.getLogger("keyscreen.session")


class DeliveryError(RuntimeError):
    """A frame write failed; the peripheral's receive buffer is in an unknown state."""


def default_pacing(system: str | None = None) -> PacingPolicy:
    system = system or platform.system()
    if system == "Darwin":
        return PacingPolicy(pre_write_s=0.2, post_write_s=0.2)
    return PacingPolicy(pre_write_s=0.0, post_write_s=0.1)


class DeviceSession:
    """Owns the single HID connection to the keyboard."""

    def __init__(
        self,
        transport: Any,
        identity: DeviceIdentity,
        screen_count: int = 4,
        encoder: ProtocolEncoder | None = None,
        pacing: PacingPolicy | None = None,
        multi_frame: bool = False,
        state: DeliveryState | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.transport = transport
        self.identity = identity
        self.screen_count = screen_count
        self.encoder = encoder or ProtocolEncoder()
        self.pacing = pacing or default_pacing()
        self.multi_frame = multi_frame
        self.state = state or DeliveryState()
        self._sleep = sleep
        self._lock = threading.RLock()
        self._status = SessionState.DISCONNECTED
        self._device: HidDeviceInfo | None = None
        self._events: deque[dict[str, Any]] = deque(maxlen=1000)

    @property
    def status(self) -> SessionState:
        return self._status

    @property
    def is_connected(self) -> bool:
        return bool(self.transport.is_open)

    @property
    def device(self) -> HidDeviceInfo | None:
        return self._device

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        events = list(self._events)
        return events[-limit:] if limit > 0 else []

    def _log_event(self, event: str, **fields: Any) -> None:
        row = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "state": self._status.value,
        }
        row.update(fields)
        self._events.append(row)

    def discover(self) -> HidDeviceInfo | None:
        for info in self.transport.discover():
            if info.matches(self.identity):
                return info
        return None

    def connect(self, info: HidDeviceInfo) -> bool:
        """Open the device, start listening, and send the handshake frame.

        Returns False when already connected or when the device could not be
        opened; raises DeliveryError when the handshake write fails.
        """
        with self._lock:
            if self.transport.is_open:
                return False

            self._status = SessionState.CONNECTING
            self._log_event("connect_start", path=info.path.decode("utf-8", "replace"))
            try:
                self.transport.open(info.path)
            except (OSError, ValueError) as exc:
                self._status = SessionState.DISCONNECTED
                self._log_event("connect_error", error=str(exc))
                _log.warning("could not open %s: %s", info.product_name, exc, extra={"event": "open_failed"})
                return False

            self._device = info
            self.transport.start_listener(self.handle_report)

            self._status = SessionState.HANDSHAKE
            try:
                self.transport.write(self.encoder.handshake(self.screen_count))
            except (OSError, ValueError) as exc:
                self._status = SessionState.FAILED
                self._log_event("handshake_error", error=str(exc))
                raise DeliveryError(f"handshake write failed: {exc}") from exc

            self._status = SessionState.READY
            self._log_event("connect_ok", product=info.product_name, screens=self.screen_count)
            _log.info("keyboard connection established", extra={"event": "connected"})
            return True

    def handle_report(self, report: bytes) -> None:
        if not report:
            return
        requested = report[0]
        if 1 <= requested <= self.screen_count:
            self.state.current_screen_index = requested - 1
            self._log_event("screen_selected", index=requested - 1)
            _log.info("keyboard requested screen index: %d", requested - 1, extra={"event": "screen_selected"})

    def deliver(self, text: str) -> DeliveryStats:
        frames = self.encoder.encode(text)
        if not self.multi_frame:
            frames = frames[:1]

        stats = DeliveryStats()
        start = time.perf_counter()
        self._status = SessionState.WRITING
        for frame in frames:
            if self.pacing.pre_write_s > 0:
                self._sleep(self.pacing.pre_write_s)
            try:
                stats.bytes_sent += self.transport.write(frame)
            except (OSError, ValueError, RuntimeError) as exc:
                self._status = SessionState.FAILED
                self._log_event("write_error", error=str(exc), frames_sent=stats.frames_sent)
                raise DeliveryError(f"failed to write HID frame: {exc}") from exc
            stats.frames_sent += 1
            if self.pacing.post_write_s > 0:
                self._sleep(self.pacing.post_write_s)

        stats.duration_s = time.perf_counter() - start
        self._status = SessionState.READY
        self._log_event("deliver_ok", frames_sent=stats.frames_sent, bytes_sent=stats.bytes_sent)
        return stats

    def close(self) -> None:
        with self._lock:
            if not self.transport.is_open and self._status == SessionState.CLOSED:
                return
            self.transport.close()
            self._device = None
            self._status = SessionState.CLOSED
            self._log_event("close")

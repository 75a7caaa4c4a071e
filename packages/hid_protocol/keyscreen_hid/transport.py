"""Raw HID transport abstraction for keyboard OLED communication."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .models import HidDeviceInfo

try:
    import hid  # type: ignore
except Exception:  # pragma: no cover
    hid = None


_log = logging.getLogger("keyscreen.hid")

REPORT_READ_SIZE = 32


class HidTransport:
    """Thin wrapper over hidapi with a background reader for inbound reports."""

    def __init__(self, transcript_path: Path | None = None, read_timeout_ms: int = 250) -> None:
        self._device: Any | None = None
        self.path: bytes | None = None
        self.transcript_path = transcript_path
        self.read_timeout_ms = read_timeout_ms
        self._listener: threading.Thread | None = None
        self._listener_stop = threading.Event()
        self._transcript_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._device is not None

    def open(self, path: bytes) -> None:
        if hid is None:
            raise RuntimeError("hidapi is required")
        if self.is_open:
            return
        device = hid.device()
        device.open_path(path)
        self._device = device
        self.path = path

    def close(self) -> None:
        self.stop_listener()
        if self._device is not None:
            device, self._device = self._device, None
            device.close()
        self.path = None

    def write(self, payload: bytes) -> int:
        if not self.is_open:
            raise RuntimeError("HID device is not open")
        written = int(self._device.write(payload))
        if written < 0:
            raise OSError("HID write failed, device may be disconnected")
        self._record("host_to_device", payload)
        return written

    def read(self, max_len: int = REPORT_READ_SIZE, timeout_ms: int | None = None) -> bytes:
        if not self.is_open:
            raise RuntimeError("HID device is not open")
        timeout = self.read_timeout_ms if timeout_ms is None else timeout_ms
        data = bytes(self._device.read(max_len, timeout))
        if data:
            self._record("device_to_host", data)
        return data

    def start_listener(self, on_report: Callable[[bytes], None]) -> None:
        if self._listener is not None and self._listener.is_alive():
            return
        self._listener_stop.clear()
        self._listener = threading.Thread(
            target=self._listen,
            args=(on_report,),
            name="keyscreen-hid-reader",
            daemon=True,
        )
        self._listener.start()

    def stop_listener(self) -> None:
        self._listener_stop.set()
        listener, self._listener = self._listener, None
        if listener is not None and listener is not threading.current_thread():
            listener.join(timeout=(self.read_timeout_ms / 1000) + 1.0)

    def _listen(self, on_report: Callable[[bytes], None]) -> None:
        while not self._listener_stop.is_set():
            try:
                report = self.read()
            except (OSError, ValueError, RuntimeError) as exc:
                if not self._listener_stop.is_set():
                    _log.warning("hid reader stopped: %s", exc, extra={"event": "reader_error"})
                return
            if report:
                on_report(report)

    def _record(self, direction: str, payload: bytes) -> None:
        if self.transcript_path is None:
            return
        row = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "dir": direction,
            "payload_hex": payload.hex().upper(),
        }
        with self._transcript_lock:
            with self.transcript_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(row) + "\n")

    @staticmethod
    def discover() -> list[HidDeviceInfo]:
        if hid is None:
            return []
        return [HidDeviceInfo.from_enumeration(item) for item in hid.enumerate()]

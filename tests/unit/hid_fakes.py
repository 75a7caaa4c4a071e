"""In-memory stand-ins for the hidapi transport used across unit tests."""

import threading
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "hid_protocol"))

from keyscreen_hid.models import DeviceIdentity, HidDeviceInfo


IDENTITY_X = DeviceIdentity(product_name="X", usage_page=0xFF60, usage_id=0x61, vendor_id=0x1234, product_id=0x5678)


def make_info(product_name="X", usage_page=0xFF60, usage_id=0x61, vendor_id=0x1234, product_id=0x5678, path=b"/dev/hidraw3"):
    return HidDeviceInfo(
        path=path,
        vendor_id=vendor_id,
        product_id=product_id,
        product_name=product_name,
        manufacturer="Test",
        serial_number="",
        usage_page=usage_page,
        usage_id=usage_id,
    )


class FakeTransport:
    def __init__(self, devices=None, fail_after=None, open_error=None):
        self.devices = list(devices or [])
        self.fail_after = fail_after
        self.open_error = open_error
        self.writes = []
        self.is_open = False
        self.opened_path = None
        self.open_calls = 0
        self.close_calls = 0
        self.listener = None
        # Cleared to hold screen writes (not the handshake) until released.
        self.release = threading.Event()
        self.release.set()
        self.write_started = threading.Event()

    def discover(self):
        return list(self.devices)

    def open(self, path):
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self.is_open = True
        self.opened_path = path

    def close(self):
        self.close_calls += 1
        self.listener = None
        self.is_open = False

    def start_listener(self, on_report):
        self.listener = on_report

    def stop_listener(self):
        self.listener = None

    def write(self, payload):
        if not self.is_open:
            raise RuntimeError("HID device is not open")
        if self.writes:
            self.write_started.set()
            self.release.wait(5)
        if self.fail_after is not None and len(self.writes) >= self.fail_after:
            raise OSError("write error")
        self.writes.append(bytes(payload))
        return len(payload)

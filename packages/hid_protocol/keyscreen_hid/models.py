"""Typed models for HID discovery, session state, and delivery."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    HANDSHAKE = "Handshake"
    READY = "Ready"
    WRITING = "Writing"
    FAILED = "Failed"
    CLOSED = "Closed"


@dataclass(frozen=True)
class DeviceIdentity:
    product_name: str
    usage_page: int
    usage_id: int
    vendor_id: int
    product_id: int


@dataclass(frozen=True)
class HidDeviceInfo:
    path: bytes
    vendor_id: int
    product_id: int
    product_name: str
    manufacturer: str
    serial_number: str
    usage_page: int
    usage_id: int
    interface_number: int = -1

    @classmethod
    def from_enumeration(cls, raw: dict[str, Any]) -> "HidDeviceInfo":
        path = raw.get("path") or b""
        if isinstance(path, str):
            path = path.encode("utf-8")
        return cls(
            path=path,
            vendor_id=int(raw.get("vendor_id") or 0),
            product_id=int(raw.get("product_id") or 0),
            product_name=raw.get("product_string") or "",
            manufacturer=raw.get("manufacturer_string") or "",
            serial_number=raw.get("serial_number") or "",
            usage_page=int(raw.get("usage_page") or 0),
            usage_id=int(raw.get("usage") or 0),
            interface_number=int(raw.get("interface_number", -1)),
        )

    def matches(self, identity: DeviceIdentity) -> bool:
        return (
            self.product_name == identity.product_name
            and self.usage_id == identity.usage_id
            and self.usage_page == identity.usage_page
            and self.vendor_id == identity.vendor_id
            and self.product_id == identity.product_id
        )


@dataclass
class DeliveryState:
    current_screen_index: int = 0
    last_delivered_text: str | None = None
    in_flight: bool = False


@dataclass(frozen=True)
class PacingPolicy:
    pre_write_s: float = 0.0
    post_write_s: float = 0.1


@dataclass
class DeliveryStats:
    frames_sent: int = 0
    bytes_sent: int = 0
    duration_s: float = 0.0

"""Raw HID protocol package for keyboard OLED status screens."""

from .encoder import FRAME_SIZE, PAYLOAD_SIZE, ProtocolEncoder
from .models import DeliveryState, DeliveryStats, DeviceIdentity, HidDeviceInfo, PacingPolicy, SessionState
from .replay import ReplayEvent, ReplayReport, ReplayRunner
from .session import DeliveryError, DeviceSession, default_pacing
from .transport import HidTransport

__all__ = [
    "DeliveryError",
    "DeliveryState",
    "DeliveryStats",
    "DeviceIdentity",
    "DeviceSession",
    "FRAME_SIZE",
    "HidDeviceInfo",
    "HidTransport",
    "PAYLOAD_SIZE",
    "PacingPolicy",
    "ProtocolEncoder",
    "ReplayEvent",
    "ReplayReport",
    "ReplayRunner",
    "SessionState",
    "default_pacing",
]

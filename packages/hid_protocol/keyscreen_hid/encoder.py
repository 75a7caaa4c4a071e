"""Raw HID frame encoding for keyboard OLED screens."""

from __future__ import annotations

REPORT_ID = 0x00
PAYLOAD_SIZE = 32
FRAME_SIZE = PAYLOAD_SIZE + 1
NEW_CONNECTION_MARKER = 0x01


class ProtocolEncoder:
    """Turns screen text into report-id prefixed frames of at most 32 payload bytes."""

    def __init__(self, payload_size: int = PAYLOAD_SIZE) -> None:
        self.payload_size = payload_size

    @staticmethod
    def text_to_bytes(text: str) -> bytes:
        # One byte per character; code points above 0xFF wrap like a byte buffer would.
        return bytes(ord(ch) & 0xFF for ch in text)

    def handshake(self, screen_count: int) -> bytes:
        if not 0 <= screen_count <= 0xFF:
            raise ValueError("screen_count must fit in one byte")
        frame = bytearray(self.payload_size + 1)
        frame[0] = REPORT_ID
        frame[1] = NEW_CONNECTION_MARKER
        frame[2] = screen_count
        return bytes(frame)

    def encode(self, text: str) -> list[bytes]:
        raw = self.text_to_bytes(text)
        if not raw:
            return [bytes([REPORT_ID])]
        return [
            bytes([REPORT_ID]) + raw[offset : offset + self.payload_size]
            for offset in range(0, len(raw), self.payload_size)
        ]

    def first_frame(self, text: str) -> bytes:
        return self.encode(text)[0]

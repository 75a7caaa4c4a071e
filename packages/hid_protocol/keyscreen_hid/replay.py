"""Replay/analysis utilities for captured HID transcripts."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from .encoder import FRAME_SIZE, NEW_CONNECTION_MARKER, REPORT_ID


_HEX_CLEAN = re.compile(r"[^0-9a-fA-F]")


@dataclass(frozen=True)
class ReplayEvent:
    line: int
    direction: str
    payload: bytes


@dataclass
class ReplayReport:
    total_events: int = 0
    host_to_device_events: int = 0
    device_to_host_events: int = 0
    handshake_count: int = 0
    announced_screens: int | None = None
    screen_frames: int = 0
    selection_reports: int = 0
    ignored_reports: int = 0
    selected_indices: list[int] = field(default_factory=list)
    raw_bytes_total: int = 0
    errors: list[str] = field(default_factory=list)


def _is_handshake(payload: bytes) -> bool:
    return (
        len(payload) == FRAME_SIZE
        and payload[0] == REPORT_ID
        and payload[1] == NEW_CONNECTION_MARKER
        and not any(payload[3:])
    )


class ReplayRunner:
    @staticmethod
    def _decode_hex(value: str) -> bytes:
        cleaned = _HEX_CLEAN.sub("", value)
        if len(cleaned) % 2 == 1:
            cleaned = cleaned[:-1]
        if not cleaned:
            return b""
        return bytes.fromhex(cleaned)

    def _parse_line(self, line_no: int, line: str) -> ReplayEvent | None:
        stripped = line.strip()
        if not stripped:
            return None
        obj = json.loads(stripped)
        direction = obj.get("dir") or obj.get("direction") or "unknown"
        hex_value = obj.get("payload_hex") or obj.get("hex") or ""
        return ReplayEvent(line=line_no, direction=direction, payload=self._decode_hex(str(hex_value)))

    def parse(self, transcript_path: Path) -> list[ReplayEvent]:
        events: list[ReplayEvent] = []
        for idx, line in enumerate(transcript_path.read_text(encoding="utf-8").splitlines(), start=1):
            event = self._parse_line(idx, line)
            if event is not None:
                events.append(event)
        return events

    def run(self, transcript_path: Path, strict: bool = True) -> ReplayReport:
        events = self.parse(transcript_path)
        report = ReplayReport(total_events=len(events))

        for event in events:
            payload = event.payload
            report.raw_bytes_total += len(payload)

            if event.direction == "host_to_device":
                report.host_to_device_events += 1
                if not payload:
                    continue
                if _is_handshake(payload):
                    report.handshake_count += 1
                    report.announced_screens = payload[2]
                    continue
                report.screen_frames += 1
                if len(payload) > FRAME_SIZE and "frame_too_long" not in report.errors:
                    report.errors.append("frame_too_long")

            elif event.direction == "device_to_host":
                report.device_to_host_events += 1
                if not payload:
                    continue
                screens = report.announced_screens or 0
                if 1 <= payload[0] <= screens:
                    report.selection_reports += 1
                    report.selected_indices.append(payload[0] - 1)
                else:
                    report.ignored_reports += 1

        if strict:
            if report.handshake_count < 1:
                report.errors.append("missing_handshake")
            if report.screen_frames < 1:
                report.errors.append("missing_screen_frame")

        return report

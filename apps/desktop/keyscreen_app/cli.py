"""CLI entrypoints for KeyScreen delivery, diagnostics, and transcript replay."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path

from keyscreen_core import (
    DiagnosticsExporter,
    LogNotifier,
    TickOutcome,
    build_doctor_payload,
    build_runtime,
    load_config,
)
from keyscreen_core.diagnostics import describe_device
from keyscreen_core.logging_setup import configure_logging, install_crash_hooks
from keyscreen_hid import HidTransport, ReplayRunner


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _transcript_arg(value: str | None) -> Path | None:
    return Path(value).expanduser().resolve() if value else None


def cmd_run(args: argparse.Namespace) -> int:
    if not args.headless:
        from .app import run_gui

        return run_gui(transcript_path=_transcript_arg(args.transcript))

    cfg = load_config()
    install_crash_hooks(headless=True)
    runtime = build_runtime(cfg, notifier=LogNotifier(), transcript_path=_transcript_arg(args.transcript))
    try:
        return runtime.run_forever()
    except KeyboardInterrupt:
        return 0


def cmd_list_devices(_args: argparse.Namespace) -> int:
    cfg = load_config()
    _print_json([describe_device(d, cfg) for d in HidTransport.discover()])
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = load_config()
    payload = build_doctor_payload(cfg)

    if args.export:
        exporter = DiagnosticsExporter()
        out_dir = Path(args.out_dir).expanduser().resolve() if args.out_dir else None
        bundle = exporter.bundle(cfg=cfg, doctor_payload=payload, recent_session_events=[], output_dir=out_dir)
        payload["diagnostics_bundle"] = str(bundle)

    _print_json(payload)
    return 0


def cmd_send_screen(args: argparse.Namespace) -> int:
    cfg = load_config()
    runtime = build_runtime(
        cfg,
        notifier=LogNotifier(),
        transcript_path=_transcript_arg(args.transcript),
        with_producers=False,
    )
    slot = max(0, min(cfg.delivery.screen_count - 1, args.slot))
    runtime.store.set(slot, args.text)
    runtime.session.state.current_screen_index = slot

    outcome = runtime.scheduler.tick()
    runtime.scheduler.wait_idle(timeout=10.0)
    stats = runtime.scheduler.last_stats
    runtime.shutdown()

    success = outcome == TickOutcome.STARTED and not runtime.failure.failed
    _print_json(
        {
            "success": success,
            "outcome": outcome.value,
            "slot": slot,
            "stats": asdict(stats) if stats else None,
            "error": str(runtime.failure.error) if runtime.failure.error else None,
        }
    )
    if runtime.failure.failed:
        return runtime.failure.exit_code or 1
    return 0 if success else 2


def cmd_replay(args: argparse.Namespace) -> int:
    runner = ReplayRunner()
    report = runner.run(Path(args.transcript), strict=not args.no_strict)
    payload = asdict(report)
    payload["success"] = len(report.errors) == 0
    _print_json(payload)
    return 0 if not report.errors else 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="keyscreen", description="Keyboard OLED status screens over raw HID")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug events")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run producers and the delivery loop")
    run_cmd.add_argument("--headless", action="store_true", help="Run without the tray icon")
    run_cmd.add_argument("--transcript", default=None, help="Append HID traffic to a JSONL transcript")
    run_cmd.set_defaults(func=cmd_run)

    doctor_cmd = sub.add_parser("doctor", help="Print diagnostics and detected HID devices")
    doctor_cmd.add_argument("--export", action="store_true", help="Export offline diagnostics bundle")
    doctor_cmd.add_argument("--out-dir", default=None, help="Optional output directory for diagnostics bundle")
    doctor_cmd.set_defaults(func=cmd_doctor)

    list_cmd = sub.add_parser("list-devices", help="List HID interfaces")
    list_cmd.set_defaults(func=cmd_list_devices)

    send_cmd = sub.add_parser("send-screen", help="Connect once and push a single screen")
    send_cmd.add_argument("--text", required=True, help="Screen text (printable ASCII)")
    send_cmd.add_argument("--slot", type=int, default=0, help="Screen index to announce as selected")
    send_cmd.add_argument("--transcript", default=None, help="Append HID traffic to a JSONL transcript")
    send_cmd.set_defaults(func=cmd_send_screen)

    replay_cmd = sub.add_parser("replay", help="Analyze a captured HID transcript")
    replay_cmd.add_argument("--transcript", required=True, help="Path to JSONL transcript")
    replay_cmd.add_argument("--no-strict", action="store_true", help="Skip mandatory handshake/screen checks")
    replay_cmd.set_defaults(func=cmd_replay)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config()
    headless_run = args.command == "run" and getattr(args, "headless", False)
    configure_logging(keep_files=cfg.diagnostics.keep_log_files, console=headless_run, verbose=args.verbose)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())

import json
import sys
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "hid_protocol"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from hid_fakes import FakeTransport, make_info
from keyscreen_core import build_runtime
from keyscreen_core.config import AppConfig, load_config
from keyscreen_core.diagnostics import DiagnosticsExporter, build_doctor_payload, redact


class DiagnosticsTests(unittest.TestCase):
    def test_doctor_flags_matching_keyboard(self):
        cfg = load_config(Path("/tmp/nonexistent-keyscreen-config.json"))
        devices = [make_info(product_name="Mercutio", vendor_id=0x6D77, product_id=0x1703), make_info()]
        with patch("keyscreen_hid.HidTransport.discover", return_value=devices):
            payload = build_doctor_payload(cfg)
        self.assertEqual([d["matches"] for d in payload["devices"]], [True, False])
        self.assertEqual(payload["devices"][0]["usage_page"], "0xFF60")

    def test_redact_nested_secrets(self):
        self.assertEqual(redact({"a": {"api_key": "x"}, "b": [1]}), {"a": {"api_key": "***REDACTED***"}, "b": [1]})

    def test_bundle_exports_zip(self):
        cfg = load_config(Path("/tmp/nonexistent-keyscreen-config.json"))
        with patch("keyscreen_hid.HidTransport.discover", return_value=[]):
            doctor = build_doctor_payload(cfg)
        exporter = DiagnosticsExporter()

        with tempfile.TemporaryDirectory() as tmp:
            bundle = exporter.bundle(
                cfg=cfg,
                doctor_payload=doctor,
                recent_session_events=[{"event": "connect_ok"}],
                output_dir=Path(tmp),
            )
            self.assertTrue(bundle.exists())

            with zipfile.ZipFile(bundle, "r") as zf:
                names = set(zf.namelist())
                self.assertIn("manifest.json", names)
                self.assertIn("doctor.json", names)
                self.assertIn("config.redacted.json", names)
                self.assertIn("session_events.json", names)


    def test_runtime_export_includes_session_events(self):
        cfg = AppConfig()
        cfg.device.product_name = "X"
        cfg.device.vendor_id = 0x1234
        cfg.device.product_id = 0x5678
        cfg.delivery.pre_write_ms = 0
        cfg.delivery.post_write_ms = 0
        transport = FakeTransport(devices=[make_info()])
        runtime = build_runtime(cfg, transport=transport, with_producers=False)
        runtime.store.set(0, "hello")
        runtime.scheduler.tick()
        self.assertTrue(runtime.scheduler.wait_idle(2))

        with tempfile.TemporaryDirectory() as tmp:
            bundle = runtime.export_diagnostics(output_dir=Path(tmp))
            with zipfile.ZipFile(bundle, "r") as zf:
                events = json.loads(zf.read("session_events.json"))
                doctor = json.loads(zf.read("doctor.json"))
        runtime.shutdown()

        self.assertEqual([e["event"] for e in events], ["connect_start", "connect_ok", "deliver_ok"])
        self.assertEqual(doctor["session_status"], "Ready")
        self.assertTrue(doctor["devices"][0]["matches"])

if __name__ == "__main__":
    unittest.main()
